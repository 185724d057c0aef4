"""
Default flow-endpoint routes.

Paths injected for a flow-capable resource are tagged with the resource's
name (``x-volos-oauth-service``). Each tagged operation is routed to
``resource.handle_flow(operationId, request)`` on that resource.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse, Response

from specauth.api.matching import HTTP_METHODS
from specauth.core.auth.interfaces import FlowCapableResource
from specauth.core.auth.merger import OAUTH_SERVICE_PROP

if TYPE_CHECKING:
    from specauth.api.middleware.security import SpecSecurity


def build_flow_router(security: SpecSecurity) -> APIRouter:
    """Build a router for every tagged flow operation in the current document."""
    router = APIRouter()
    specification = security.specification
    base_path = (specification.get("basePath") or "").rstrip("/")

    for path, path_item in (specification.get("paths") or {}).items():
        resource_name = (path_item or {}).get(OAUTH_SERVICE_PROP)
        if not resource_name:
            continue

        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            endpoint = operation.get("operationId") or path.strip("/")
            router.add_api_route(
                base_path + path,
                flow_handler(security, resource_name, endpoint),
                methods=[method.upper()],
                name=f"{resource_name}:{endpoint}",
                include_in_schema=False,
            )

    return router


def flow_handler(security: SpecSecurity, resource_name: str, endpoint: str):
    """Route handler delegating to the resource's flow implementation."""
    async def handle(request: Request) -> Response:
        # Looked up per request so a reload is picked up
        resource = security.resources.get(resource_name)
        if not isinstance(resource, FlowCapableResource):
            return JSONResponse(
                status_code=404,
                content={
                    "error": "not_found",
                    "error_description": f"No flow resource '{resource_name}'",
                },
            )
        return await resource.handle_flow(endpoint, request)

    return handle
