"""
Request -> operation matching.

Stands in for the routing layer of a Swagger-driven framework: finds the
path item and operation of the API document a request targets.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from specauth.core.auth.interfaces import OperationKey

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")

_PARAM = re.compile(r"\{([^}/]+)\}")


@dataclass
class OperationMatch:
    """Operation matched for a request (``request.state.swagger``)."""
    key: OperationKey
    path_item: dict[str, Any]
    operation: dict[str, Any]
    params: dict[str, str] = field(default_factory=dict)
    document: Mapping[str, Any] | None = None


@dataclass
class _Route:
    template: str
    pattern: re.Pattern
    names: list[str]
    path_item: dict[str, Any]


def compile_path(template: str) -> tuple[re.Pattern, list[str]]:
    """
    Compile a path template to a regex.

    Examples:
        compile_path("/orders/{id}")
        # -> (re.compile("^/orders/([^/]+)/?$"), ["id"])
    """
    names: list[str] = []
    pattern = ""
    last = 0
    for m in _PARAM.finditer(template):
        pattern += re.escape(template[last:m.start()]) + "([^/]+)"
        names.append(m.group(1))
        last = m.end()
    pattern += re.escape(template[last:].rstrip("/"))
    return re.compile(f"^{pattern}/?$"), names


class OperationMatcher:
    """
    Matches request paths against the document's path templates.

    Literal paths win over templated ones (``/orders/new`` before
    ``/orders/{id}``). A path whose item lacks the request method does not
    stop the search, so ``GET /orders/new`` still matches ``/orders/{id}``
    when ``/orders/new`` only declares ``post``.

    ``HEAD`` without its own operation is matched to the ``GET`` operation.
    """

    def __init__(self, specification: Mapping[str, Any]):
        self.specification = specification
        base_path = (specification.get("basePath") or "").rstrip("/")

        routes = []
        for template, path_item in (specification.get("paths") or {}).items():
            pattern, names = compile_path(base_path + template)
            routes.append(_Route(template, pattern, names, path_item or {}))

        routes.sort(key=lambda r: (len(r.names), -len(r.template)))
        self._routes = routes

    def match(self, path: str, method: str) -> OperationMatch | None:
        """Return the matched operation, or None if no operation handles it."""
        method = method.lower()
        for route in self._routes:
            m = route.pattern.match(path)
            if not m:
                continue
            operation_method = method
            operation = route.path_item.get(method)
            if operation is None and method == "head":
                operation_method = "get"
                operation = route.path_item.get("get")
            if not isinstance(operation, dict):
                continue
            return OperationMatch(
                key=OperationKey(route.template, operation_method),
                path_item=route.path_item,
                operation=operation,
                params=dict(zip(route.names, m.groups())),
                document=self.specification,
            )
        return None
