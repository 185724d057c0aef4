"""
Operation matching middleware.
"""

from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from specauth.api.matching import OperationMatcher

MatcherSource = Callable[[], OperationMatcher | None]


class OperationMatcherMiddleware(BaseHTTPMiddleware):
    """
    Store the matched operation on ``request.state.swagger``.

    ``matcher`` is either a fixed OperationMatcher or a callable returning
    the current one (so a reloaded document is matched against). While no
    matcher is available the request state is left untouched.
    """

    def __init__(self, app, matcher: OperationMatcher | MatcherSource):
        super().__init__(app)
        if isinstance(matcher, OperationMatcher):
            self._matcher: MatcherSource = lambda: matcher
        else:
            self._matcher = matcher

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        matcher = self._matcher()
        if matcher is not None:
            request.state.swagger = matcher.match(request.url.path, request.method)
        return await call_next(request)
