"""
Authorization core.

Usage:
    from specauth.core.auth import SecurityContext

    ctx = SecurityContext.load("api/swagger/swagger.yaml")
    chain = ctx.chains.resolve(key, operation, path_item)
    response = await chain.run(auth_context)

Extensibility:
    Register security providers by name:

    @security_providers.provider("memory-oauth")
    def create(options):
        return MemoryOAuth(**options)
"""

from .interfaces import (
    AuthContext,
    ChainStep,
    FlowCapableResource,
    OperationKey,
    ResourceMap,
    SecurityResource,
    parse_scopes,
)
from .merger import OAUTH_SERVICE_PROP, flow_endpoint_names, inject_flows
from .resources import (
    SERVICES,
    build_resources,
    security_handler,
    security_handlers,
)
from .chain import (
    A127_AUTH,
    VOLOS_AUTH,
    AuthChain,
    ChainBuilder,
    ChainCache,
    find_requirements,
)
from .context import SecurityContext, load_specification

__all__ = [
    # Interfaces
    "AuthContext",
    "ChainStep",
    "FlowCapableResource",
    "OperationKey",
    "ResourceMap",
    "SecurityResource",
    "parse_scopes",
    # Merger
    "OAUTH_SERVICE_PROP",
    "flow_endpoint_names",
    "inject_flows",
    # Registry
    "SERVICES",
    "build_resources",
    "security_handler",
    "security_handlers",
    # Chains
    "A127_AUTH",
    "VOLOS_AUTH",
    "AuthChain",
    "ChainBuilder",
    "ChainCache",
    "find_requirements",
    # Context
    "SecurityContext",
    "load_specification",
]
