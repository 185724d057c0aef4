"""Middleware package."""

from specauth.api.middleware.matching import OperationMatcherMiddleware
from specauth.api.middleware.security import SpecSecurity, create_middleware, error_response

__all__ = [
    "OperationMatcherMiddleware",
    "SpecSecurity",
    "create_middleware",
    "error_response",
]
