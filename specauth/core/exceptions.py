"""
Error taxonomy.

Load-time errors (LoadError, MergeError) abort loading a document entirely.
Request-time errors (AuthorizationError) only affect the request that hit them
and carry the HTTP status the middleware answers with.
"""

from typing import Iterable, Mapping


class SpecAuthError(Exception):
    """Base class for all specauth errors."""


# ============================================================
# LOAD ERRORS
# ============================================================

class LoadError(SpecAuthError):
    """Raised while building the resource registry."""


class ProviderLoadError(LoadError):
    def __init__(self, provider: str, reason: str = ""):
        self.provider = provider
        message = f"Cannot load security provider '{provider}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResourceInitError(LoadError):
    def __init__(self, resource_name: str, reason: str = ""):
        self.resource_name = resource_name
        message = f"Security resource '{resource_name}' rejected its options"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class HelperNotFoundError(LoadError):
    def __init__(self, owner_label: str, reference: str):
        self.owner_label = owner_label
        self.reference = reference
        super().__init__(
            f"Helper function '{reference}' for {owner_label} not found"
        )


class HelperLoadError(LoadError):
    def __init__(self, owner_label: str, reference: str, reason: str = ""):
        self.owner_label = owner_label
        self.reference = reference
        message = f"Cannot load helper module for '{reference}' ({owner_label})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# ============================================================
# MERGE ERRORS
# ============================================================

class MergeError(SpecAuthError):
    """Raised while injecting flow endpoints into a document."""


class PathCollisionError(MergeError):
    """
    Flow endpoints target paths that are taken.

    ``endpoints`` maps each colliding endpoint name to its target path;
    ``paths`` lists the distinct target paths.
    """

    def __init__(self, endpoints: Mapping[str, str]):
        self.endpoints = dict(sorted(endpoints.items()))
        self.paths = sorted(set(self.endpoints.values()))
        described = ", ".join(f"{name} ({path})" for name, path in self.endpoints.items())
        super().__init__(
            f"Paths for endpoints {described} already exist. Cannot insert OAuth."
        )


class DefinitionCollisionError(MergeError):
    def __init__(self, definitions: Iterable[str]):
        self.definitions = sorted(definitions)
        super().__init__(
            f"Definitions {', '.join(self.definitions)} already exist. "
            "Cannot insert OAuth."
        )


class UnknownFlowEndpointError(MergeError):
    def __init__(self, names: Iterable[str], valid: Iterable[str]):
        self.names = sorted(names)
        self.valid = sorted(valid)
        super().__init__(
            f"Invalid tokenPaths key: {', '.join(self.names)}. "
            f"Must be one of: {', '.join(self.valid)}"
        )


# ============================================================
# REQUEST ERRORS
# ============================================================

class AuthorizationError(SpecAuthError):
    """A request could not be authorized."""

    status_code: int = 403
    error: str = "access_denied"

    def __init__(self, detail: str = "Access denied"):
        self.detail = detail
        super().__init__(detail)


class ConfigError(AuthorizationError):
    error = "configuration_error"


class UnknownResourceError(ConfigError):
    def __init__(self, resource_name: str, operation: str):
        self.resource_name = resource_name
        self.operation = operation
        super().__init__(
            f"Unknown security resource '{resource_name}' "
            f"required by operation {operation}"
        )


class InvalidRequirementError(ConfigError):
    def __init__(self, resource_name: str, operation: str):
        self.resource_name = resource_name
        self.operation = operation
        super().__init__(
            f"Requirement for security resource '{resource_name}' "
            f"on operation {operation} must be a mapping"
        )


class AuthFailure(AuthorizationError):
    """Raised by a resource when credentials do not verify."""

    status_code = 401
    error = "invalid_token"

    def __init__(self, detail: str = "Invalid authorization token"):
        super().__init__(detail)


class InsufficientScopeError(AuthFailure):
    status_code = 403
    error = "insufficient_scope"

    def __init__(self, detail: str = "Token not authorized for this action"):
        super().__init__(detail)
