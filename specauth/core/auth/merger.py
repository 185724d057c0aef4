"""
Injection of standard flow endpoints into a live API document.

Flow-capable resources declare ``tokenPaths`` in their options. The path
items and definitions for those endpoints come from the bundled flow
template (``specauth/spec/oauth_operations.yaml``) and are copied into the
document. Nothing already in the document is ever overwritten: every
collision is detected and reported before the document is touched.
"""

import copy
from collections import Counter
from functools import lru_cache
from importlib import resources as importlib_resources
from typing import Any, Iterable, Mapping

import structlog
import yaml

from ..exceptions import (
    DefinitionCollisionError,
    PathCollisionError,
    UnknownFlowEndpointError,
)

logger = structlog.get_logger()

# Tag on injected path items naming the resource that serves them
OAUTH_SERVICE_PROP = "x-volos-oauth-service"

TEMPLATE_PACKAGE = "specauth.spec"
TEMPLATE_FILE = "oauth_operations.yaml"


@lru_cache
def flow_template() -> dict[str, Any]:
    """Load the bundled flow template (once)."""
    text = (
        importlib_resources.files(TEMPLATE_PACKAGE)
        .joinpath(TEMPLATE_FILE)
        .read_text(encoding="utf-8")
    )
    return yaml.safe_load(text)


def flow_endpoint_names() -> list[str]:
    """Endpoint names the template provides (``/token`` -> ``token``)."""
    return sorted(key[1:] for key in flow_template().get("paths", {}))


def normalize_endpoints(endpoints: Mapping[str, str] | Iterable[str] | None) -> dict[str, str]:
    """
    Normalize ``tokenPaths`` to ``{endpoint_name: target_path}``.

    A list of names maps each name to ``/<name>``.
    """
    if not endpoints:
        return {}
    if isinstance(endpoints, Mapping):
        return {str(name): str(path) for name, path in endpoints.items()}
    if isinstance(endpoints, str):
        endpoints = [endpoints]
    return {str(name): f"/{name}" for name in endpoints}


def inject_flows(
    specification: dict[str, Any],
    resource_name: str,
    endpoints: Mapping[str, str] | Iterable[str] | None,
    template: Mapping[str, Any] | None = None,
) -> None:
    """
    Inject a resource's flow endpoints into ``specification``.

    Args:
        specification: Live API document, mutated in place
        resource_name: Resource serving the endpoints (tagged on each path)
        endpoints: ``tokenPaths`` option, mapping or list of endpoint names
        template: Flow template (defaults to the bundled one)

    Raises:
        PathCollisionError: A target path already exists, or two endpoints
            share one
        DefinitionCollisionError: A template definition name already exists
        UnknownFlowEndpointError: An endpoint name has no template
    """
    endpoints = normalize_endpoints(endpoints)
    if not endpoints:
        return

    template = template if template is not None else flow_template()
    template_paths = template.get("paths") or {}
    template_definitions = template.get("definitions") or {}

    existing_paths = specification.get("paths") or {}
    existing_definitions = specification.get("definitions") or {}

    # All checks complete before the document is mutated
    targets = Counter(endpoints.values())
    colliding = {
        name: path
        for name, path in endpoints.items()
        if path in existing_paths or targets[path] > 1
    }
    if colliding:
        raise PathCollisionError(colliding)

    colliding_definitions = [
        name for name in template_definitions if name in existing_definitions
    ]
    if colliding_definitions:
        raise DefinitionCollisionError(colliding_definitions)

    unknown = [name for name in endpoints if f"/{name}" not in template_paths]
    if unknown:
        raise UnknownFlowEndpointError(
            unknown, [key[1:] for key in template_paths]
        )

    all_paths = specification.setdefault("paths", {})
    all_definitions = specification.setdefault("definitions", {})

    for name, path in endpoints.items():
        path_item = copy.deepcopy(template_paths[f"/{name}"])
        path_item[OAUTH_SERVICE_PROP] = resource_name
        all_paths[path] = path_item

    for name, definition in template_definitions.items():
        all_definitions[name] = copy.deepcopy(definition)

    logger.debug(
        "flow_endpoints_injected",
        resource=resource_name,
        paths=sorted(endpoints.values()),
        definitions=sorted(template_definitions),
    )
