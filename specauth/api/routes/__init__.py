"""Routes."""

from specauth.api.routes.flows import build_flow_router, flow_handler

__all__ = ["build_flow_router", "flow_handler"]
