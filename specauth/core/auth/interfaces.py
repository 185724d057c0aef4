"""
Security interfaces - Core abstractions.

These define the contract every security resource implementation follows.
The chain builder and the middleware depend ONLY on these interfaces.

- SecurityResource: verifies credentials against required scopes
- FlowCapableResource: additionally serves standard flow endpoints
  (token issuance, refresh, ...) injected into the API document
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, NamedTuple, Sequence

from starlette.requests import Request
from starlette.responses import Response


# ============================================================
# OPERATION IDENTITY
# ============================================================

class OperationKey(NamedTuple):
    """Stable identifier of an operation: its path template and method."""
    path: str
    method: str

    def __str__(self) -> str:
        return f"{self.method.upper()} {self.path}"


# ============================================================
# REQUEST CONTEXT
# ============================================================

@dataclass
class AuthContext:
    """
    Per-request record handed to every chain step.

    Attributes:
        request: The incoming request
        key: Matched operation
        operation: Operation object from the API document
        path_item: Path item containing the operation
        authorization: Result of the last successful verification
        resources: ResourceMap, attached by the terminal step
    """
    request: Request
    key: OperationKey
    operation: dict[str, Any] = field(default_factory=dict)
    path_item: dict[str, Any] = field(default_factory=dict)
    authorization: Any = None
    resources: "ResourceMap | None" = None

    @property
    def credentials(self) -> str | None:
        """Raw value of the Authorization header."""
        return self.request.headers.get("authorization")


# A step returns None to pass control on, or a Response to short-circuit.
# Raising AuthorizationError ends the chain.
ChainStep = Callable[[AuthContext], Awaitable[Response | None]]


def parse_scopes(scope: Any) -> list[str]:
    """Normalize a declared scope (space separated string or list) to a list."""
    if scope is None:
        return []
    if isinstance(scope, str):
        return scope.split()
    return [str(s) for s in scope]


# ============================================================
# SECURITY RESOURCE
# ============================================================

class SecurityResource(ABC):
    """
    A named security provider instance declared by the API document.

    Implementations must raise AuthFailure (or a subclass) from
    :meth:`verify` when credentials are missing, invalid, or lack
    the required scopes.
    """

    @abstractmethod
    async def verify(
        self,
        credentials: str | None,
        scopes: Sequence[str],
    ) -> Any:
        """
        Verify credentials against required scopes.

        Args:
            credentials: Authorization header value (may be None)
            scopes: Scopes the operation requires

        Returns:
            Verification result (token info, principal, ...)
        """
        pass

    def scope_middleware(self, scope: Any) -> ChainStep:
        """
        Build the chain step that checks ``scope`` on a request.

        The step stores the verification result on the context and on
        ``request.state.token``.
        """
        scopes = parse_scopes(scope)

        async def check_scope(ctx: AuthContext) -> Response | None:
            result = await self.verify(ctx.credentials, scopes)
            ctx.authorization = result
            ctx.request.state.token = result
            return None

        check_scope.scopes = tuple(scopes)
        check_scope.resource = self
        return check_scope


class FlowCapableResource(SecurityResource):
    """
    Security resource that serves standard authorization-flow endpoints.

    ``flow_endpoints`` names the endpoints (``/<name>`` in the bundled
    flow template) this resource can handle.
    """

    scheme: str = "oauth2"
    flow_endpoints: tuple[str, ...] = ("authorize", "token", "invalidate", "refresh")

    @abstractmethod
    async def handle_flow(self, endpoint: str, request: Request) -> Response:
        """
        Handle a request to an injected flow endpoint.

        Args:
            endpoint: operationId of the flow operation (e.g. "token")
            request: The incoming request
        """
        pass


# ============================================================
# RESOURCE MAP
# ============================================================

class ResourceMap(Mapping[str, SecurityResource]):
    """Read-only mapping of resource name -> instantiated resource."""

    def __init__(self, resources: Mapping[str, SecurityResource] | None = None):
        self._resources = dict(resources or {})

    def __getitem__(self, name: str) -> SecurityResource:
        return self._resources[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"ResourceMap({list(self._resources)})"

    def flow_capable(self) -> dict[str, FlowCapableResource]:
        """Subset of resources exposing flow capability."""
        return {
            name: resource
            for name, resource in self._resources.items()
            if isinstance(resource, FlowCapableResource)
        }
