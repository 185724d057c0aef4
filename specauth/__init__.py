"""
specauth - authorize API requests against the scopes declared in a
Swagger document.

Usage:
    from fastapi import FastAPI
    from specauth import SpecSecurity, security_providers

    @security_providers.provider("memory-oauth")
    def create(options):
        return MemoryOAuth(options)

    app = FastAPI()
    SpecSecurity("api/swagger/swagger.yaml").install(app)
"""

from specauth.core.auth import (
    AuthChain,
    AuthContext,
    ChainBuilder,
    ChainCache,
    FlowCapableResource,
    OperationKey,
    ResourceMap,
    SecurityContext,
    SecurityResource,
    build_resources,
    inject_flows,
    load_specification,
    security_handlers,
)
from specauth.core.config import SecuritySettings, get_settings
from specauth.core.exceptions import (
    AuthFailure,
    AuthorizationError,
    ConfigError,
    DefinitionCollisionError,
    HelperLoadError,
    HelperNotFoundError,
    InsufficientScopeError,
    InvalidRequirementError,
    LoadError,
    MergeError,
    PathCollisionError,
    ProviderLoadError,
    ResourceInitError,
    SpecAuthError,
    UnknownFlowEndpointError,
    UnknownResourceError,
)
from specauth.core.logging import configure_logging
from specauth.core.plugins import HelperResolver, load_provider, security_providers
from specauth.api.matching import OperationMatch, OperationMatcher
from specauth.api.middleware import OperationMatcherMiddleware, SpecSecurity, create_middleware

__version__ = "0.1.0"

__all__ = [
    # Middleware
    "SpecSecurity",
    "create_middleware",
    "OperationMatch",
    "OperationMatcher",
    "OperationMatcherMiddleware",
    # Core
    "AuthChain",
    "AuthContext",
    "ChainBuilder",
    "ChainCache",
    "FlowCapableResource",
    "OperationKey",
    "ResourceMap",
    "SecurityContext",
    "SecurityResource",
    "build_resources",
    "inject_flows",
    "load_specification",
    "security_handlers",
    # Plugins
    "HelperResolver",
    "load_provider",
    "security_providers",
    # Config / logging
    "SecuritySettings",
    "get_settings",
    "configure_logging",
    # Errors
    "SpecAuthError",
    "LoadError",
    "ProviderLoadError",
    "ResourceInitError",
    "HelperNotFoundError",
    "HelperLoadError",
    "MergeError",
    "PathCollisionError",
    "DefinitionCollisionError",
    "UnknownFlowEndpointError",
    "AuthorizationError",
    "ConfigError",
    "UnknownResourceError",
    "InvalidRequirementError",
    "AuthFailure",
    "InsufficientScopeError",
]
