"""
Authorization chains.

For every operation of the API document an AuthChain is built on the first
request that hits it and cached by operation key:

    chain = cache.resolve(key, operation, path_item)
    response = await chain.run(ctx)

Requirements are read from, in order (first present wins, an explicitly
empty mapping included):

1. ``x-a127-authorizations`` on the operation
2. ``x-a127-authorizations`` on the path item
3. ``x-volos-authorizations`` on the operation
4. ``x-volos-authorizations`` on the path item
"""

from dataclasses import dataclass
from typing import Any, Mapping
import threading

import structlog
from starlette.responses import Response

from ..exceptions import InvalidRequirementError, UnknownResourceError
from .interfaces import AuthContext, ChainStep, OperationKey, ResourceMap

logger = structlog.get_logger()

A127_AUTH = "x-a127-authorizations"
VOLOS_AUTH = "x-volos-authorizations"


def find_requirements(
    operation: Mapping[str, Any] | None,
    path_item: Mapping[str, Any] | None,
) -> Mapping[str, Any] | None:
    """Return the applicable ``resource name -> {scope}`` mapping, if any."""
    sources = (
        (operation, A127_AUTH),
        (path_item, A127_AUTH),
        (operation, VOLOS_AUTH),
        (path_item, VOLOS_AUTH),
    )
    for source, key in sources:
        if source and source.get(key) is not None:
            return source[key]
    return None


def attach_resources(resources: ResourceMap) -> ChainStep:
    """Terminal step: expose the ResourceMap to downstream code."""
    security = {"resources": resources}

    async def attach(ctx: AuthContext) -> Response | None:
        ctx.resources = resources
        ctx.request.state.security = security
        return None

    return attach


# ============================================================
# CHAIN
# ============================================================

@dataclass(frozen=True)
class AuthChain:
    """Ordered, immutable sequence of steps for one operation."""
    key: OperationKey
    steps: tuple[ChainStep, ...]

    async def run(self, ctx: AuthContext) -> Response | None:
        """
        Run every step in order.

        Returns:
            The Response of a short-circuiting step, or None when all
            steps passed.

        Raises:
            AuthorizationError: From the first failing step; later steps
                are not run.
        """
        for step in self.steps:
            response = await step(ctx)
            if response is not None:
                logger.debug("auth_chain_short_circuit", operation=str(self.key))
                return response
        return None

    def __len__(self) -> int:
        return len(self.steps)


class ChainBuilder:
    """Builds chains from an operation and the ResourceMap. Pure."""

    def __init__(self, resources: ResourceMap):
        self.resources = resources

    def build(
        self,
        key: OperationKey,
        operation: Mapping[str, Any] | None,
        path_item: Mapping[str, Any] | None = None,
    ) -> AuthChain:
        """
        Build the chain for one operation.

        Raises:
            UnknownResourceError: A requirement names an undeclared resource
            InvalidRequirementError: A requirement is not a mapping
        """
        requirements = find_requirements(operation, path_item) or {}

        steps: list[ChainStep] = []
        for name, requirement in requirements.items():
            resource = self.resources.get(name)
            if resource is None:
                raise UnknownResourceError(name, str(key))
            if requirement is None:
                requirement = {}
            elif not isinstance(requirement, Mapping):
                raise InvalidRequirementError(name, str(key))
            scope = requirement.get("scope")
            logger.debug("authenticate_scope", operation=str(key), resource=name, scope=scope)
            steps.append(resource.scope_middleware(scope))

        steps.append(attach_resources(self.resources))
        return AuthChain(key=key, steps=tuple(steps))


class ChainCache:
    """
    Per-operation chain cache.

    Builds run outside the lock, so concurrent first requests for the same
    operation may each build a chain; the insert is insert-if-absent and
    every caller gets the installed one. Failed builds are not cached.
    """

    def __init__(self, builder: ChainBuilder):
        self.builder = builder
        self._chains: dict[OperationKey, AuthChain] = {}
        self._lock = threading.Lock()
        self.builds = 0

    def get(self, key: OperationKey) -> AuthChain | None:
        """Cached chain for ``key``, if built."""
        return self._chains.get(key)

    def resolve(
        self,
        key: OperationKey,
        operation: Mapping[str, Any] | None,
        path_item: Mapping[str, Any] | None = None,
    ) -> AuthChain:
        """Return the cached chain, building and installing it on a miss."""
        chain = self._chains.get(key)
        if chain is not None:
            return chain

        logger.debug("creating_auth_chain", operation=str(key))
        built = self.builder.build(key, operation, path_item)

        with self._lock:
            self.builds += 1
            return self._chains.setdefault(key, built)

    def __len__(self) -> int:
        return len(self._chains)

    def __contains__(self, key: object) -> bool:
        return key in self._chains
