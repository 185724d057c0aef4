"""
Security middleware driven by the API document.

Usage:
    from fastapi import FastAPI
    from specauth import SpecSecurity

    app = FastAPI()
    security = SpecSecurity("api/swagger/swagger.yaml")
    security.install(app)

    # Resources are reachable directly, and from handlers via
    # request.state.security["resources"]
    oauth = security.resources["oauth"]

For each request the matched operation's AuthChain runs before the route.
A failing check answers with a JSON error; a passing chain leaves
``request.state.auth`` (AuthContext), ``request.state.token`` and
``request.state.security`` for the route.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Union
import threading

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from specauth.api.matching import OperationMatch, OperationMatcher
from specauth.api.middleware.matching import OperationMatcherMiddleware
from specauth.core.auth.context import SecurityContext
from specauth.core.auth.interfaces import AuthContext, ResourceMap
from specauth.core.auth.resources import SecurityHandler
from specauth.core.config import SecuritySettings, get_settings
from specauth.core.exceptions import AuthorizationError
from specauth.core.plugins.registry import PluginRegistry, security_providers

logger = structlog.get_logger()

Document = Union[Path, str, Mapping[str, Any]]


@dataclass(frozen=True)
class _Loaded:
    """Context and matcher swapped together on reload."""
    context: SecurityContext
    matcher: OperationMatcher


def error_response(error: AuthorizationError) -> JSONResponse:
    """Map an authorization error to a JSON response."""
    headers = {}
    if error.status_code == 401:
        headers["WWW-Authenticate"] = f'Bearer error="{error.error}"'
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.error, "error_description": error.detail},
        headers=headers,
    )


class SpecSecurity:
    """
    The constructed middleware.

    Callable as ``(request, call_next)``, so it plugs into Starlette as a
    ``BaseHTTPMiddleware`` dispatch function. Also exposes:

    - ``resources``: the ResourceMap
    - ``security_handlers``: one handler per flow-capable resource
    - ``controllers``: router serving the injected flow endpoints
    """

    def __init__(
        self,
        document: Document | None = None,
        settings: SecuritySettings | None = None,
        registry: PluginRegistry = security_providers,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self._loaded: _Loaded | None = None
        self._load_lock = threading.Lock()

        if document is not None:
            self._loaded = self._load(document)

    # ============================================================
    # LOADING
    # ============================================================

    def _load(self, document: Document) -> _Loaded:
        context = SecurityContext.load(document, self.settings, self.registry)
        return _Loaded(context, OperationMatcher(context.specification))

    def reload(self, document: Document) -> SecurityContext:
        """
        Load ``document`` and swap it in.

        In-flight requests finish on the context they started with. If
        loading fails the current context stays in place.
        """
        loaded = self._load(document)
        with self._load_lock:
            self._loaded = loaded
        logger.info("security_context_swapped", resources=sorted(loaded.context.resources))
        return loaded.context

    def _ensure_loaded(self, document: Document | None) -> _Loaded | None:
        with self._load_lock:
            if self._loaded is None and document is not None:
                self._loaded = self._load(document)
            return self._loaded

    @property
    def context(self) -> SecurityContext | None:
        loaded = self._loaded
        return loaded.context if loaded else None

    @property
    def specification(self) -> dict[str, Any]:
        context = self.context
        return context.specification if context else {}

    @property
    def resources(self) -> ResourceMap:
        context = self.context
        return context.resources if context else ResourceMap()

    @property
    def security_handlers(self) -> dict[str, SecurityHandler]:
        context = self.context
        return context.security_handlers if context else {}

    @property
    def matcher(self) -> OperationMatcher | None:
        loaded = self._loaded
        return loaded.matcher if loaded else None

    @property
    def controllers(self):
        """Router serving the flow endpoints of the current document."""
        from specauth.api.routes.flows import build_flow_router
        return build_flow_router(self)

    # ============================================================
    # REQUEST HANDLING
    # ============================================================

    async def __call__(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        loaded = self._loaded
        match: OperationMatch | None = getattr(request.state, "swagger", None)

        if loaded is None:
            document = match.document if match is not None else None
            loaded = self._ensure_loaded(document)
            if loaded is None:
                logger.error("security_document_missing", path=request.url.path)
                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "server_error",
                        "error_description": "No API document loaded",
                    },
                )

        # Matches made against another document are redone against this context
        if match is None or match.document is not loaded.context.specification:
            match = loaded.matcher.match(request.url.path, request.method)
            request.state.swagger = match

        if match is None or not match.operation:
            return await call_next(request)

        logger.debug("handle_request", path=request.url.path, operation=str(match.key))

        auth = AuthContext(
            request=request,
            key=match.key,
            operation=match.operation,
            path_item=match.path_item,
        )
        request.state.auth = auth

        try:
            chain = loaded.context.chains.resolve(
                match.key, match.operation, match.path_item
            )
            response = await chain.run(auth)
        except AuthorizationError as e:
            logger.info(
                "authorization_failed",
                operation=str(match.key),
                error=e.error,
                detail=e.detail,
            )
            return error_response(e)

        if response is not None:
            return response
        return await call_next(request)

    def install(self, app: Any, include_flow_routes: bool = True) -> None:
        """
        Mount the matcher and security middleware (and the flow routes) on
        an ASGI app.

        Flow routes are registered from the document loaded at install time.
        """
        if include_flow_routes and self.context is not None and hasattr(app, "include_router"):
            app.include_router(self.controllers)
        app.add_middleware(BaseHTTPMiddleware, dispatch=self)
        # Added last so it runs first
        app.add_middleware(OperationMatcherMiddleware, matcher=lambda: self.matcher)


def create_middleware(
    document: Document | None = None,
    settings: SecuritySettings | None = None,
) -> SpecSecurity:
    """Build the security middleware for an API document."""
    return SpecSecurity(document, settings)
