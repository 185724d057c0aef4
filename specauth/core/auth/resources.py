"""
Security resource registry.

Builds the ResourceMap from an API document's service declarations:

    x-a127-services:
      oauth:
        provider: volos-oauth-redis
        options:
          passwordCheck: passwords.check
          tokenPaths:
            token: /accesstoken

Declarations are processed in SERVICES order, so a name declared under
``x-a127-services`` always wins over the same name under
``x-volos-resources``.
"""

from typing import Any, Awaitable, Callable, Mapping

import structlog
from starlette.requests import Request

from ..exceptions import AuthFailure, LoadError, ResourceInitError
from ..plugins.loader import HelperResolver, load_provider
from ..plugins.registry import PluginRegistry, security_providers
from .interfaces import FlowCapableResource, ResourceMap, SecurityResource
from .merger import inject_flows

logger = structlog.get_logger()

# Recognized service-declaration keys, in priority order
SERVICES = ("x-a127-services", "x-volos-resources")

# Reserved option keys
PASSWORD_CHECK = "passwordCheck"
TOKEN_PATHS = "tokenPaths"

SecurityHandler = Callable[[Request, Mapping[str, Any], list[str]], Awaitable[None]]


def build_resources(
    specification: dict[str, Any],
    resolver: HelperResolver | None = None,
    registry: PluginRegistry = security_providers,
) -> ResourceMap:
    """
    Instantiate every declared security resource.

    Flow endpoints of a resource are merged into ``specification`` right
    after the resource is created, so the returned map is only handed out
    once the document holds every flow route.

    Raises:
        ProviderLoadError: Provider reference cannot be loaded
        ResourceInitError: Provider rejected its options
        HelperNotFoundError / HelperLoadError: Bad passwordCheck reference
        MergeError: Flow endpoints collide with the document
    """
    resolver = resolver or HelperResolver()
    resources: dict[str, SecurityResource] = {}

    for service_key in SERVICES:
        declarations = specification.get(service_key) or {}
        for name, declaration in declarations.items():
            if name in resources:
                logger.warning(
                    "duplicate_security_resource",
                    resource=name,
                    service_key=service_key,
                    kept=True,
                )
                continue

            resources[name] = create_resource(
                specification, name, declaration or {}, resolver, registry
            )

    logger.info("security_resources_built", resources=sorted(resources))
    return ResourceMap(resources)


def create_resource(
    specification: dict[str, Any],
    name: str,
    declaration: Mapping[str, Any],
    resolver: HelperResolver,
    registry: PluginRegistry = security_providers,
) -> SecurityResource:
    """Instantiate one declared resource and merge its flow endpoints."""
    provider = declaration.get("provider")
    options = dict(declaration.get("options") or {})

    logger.debug(
        "creating_security_resource",
        resource=name,
        provider=provider,
        options=sorted(options),
    )

    factory = load_provider(provider, registry)

    if options.get(PASSWORD_CHECK):
        options[PASSWORD_CHECK] = resolver.resolve(
            f"{name} {PASSWORD_CHECK}", options[PASSWORD_CHECK]
        )

    try:
        resource = factory(options)
    except LoadError:
        raise
    except Exception as e:
        raise ResourceInitError(name, str(e)) from e

    if not isinstance(resource, SecurityResource):
        raise ResourceInitError(
            name, f"provider returned {type(resource).__name__}, not a SecurityResource"
        )

    if options.get(TOKEN_PATHS):
        inject_flows(specification, name, options[TOKEN_PATHS])

    return resource


def security_handlers(resources: ResourceMap) -> dict[str, SecurityHandler]:
    """One security handler per flow-capable resource."""
    return {
        name: security_handler(resource)
        for name, resource in resources.flow_capable().items()
    }


def security_handler(resource: FlowCapableResource) -> SecurityHandler:
    """
    Build a handler for external security-declaration tooling.

    The handler rejects declarations whose ``type`` is not the resource's
    scheme without consulting the resource. Otherwise it verifies the
    request's Authorization header and stores the result on
    ``request.state.token``.
    """
    async def handler(
        request: Request,
        security_definition: Mapping[str, Any],
        scopes: list[str],
    ) -> None:
        declared_type = security_definition.get("type")
        if declared_type != resource.scheme:
            logger.debug(
                "security_handler_type_mismatch",
                declared=declared_type,
                expected=resource.scheme,
            )
            raise AuthFailure(
                f"Invalid security definition type '{declared_type}'. "
                f"Must be '{resource.scheme}'"
            )

        logger.debug("authenticate_scopes", scopes=scopes)
        try:
            result = await resource.verify(
                request.headers.get("authorization"), scopes
            )
        except AuthFailure as e:
            logger.debug("authentication_error", error=str(e))
            raise

        request.state.token = result

    return handler
