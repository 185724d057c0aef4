"""
Security context - one loaded API document with everything derived from it.

A context is never mutated after load apart from its chain cache. Reloading
means building a new context and swapping the reference held by the
middleware.
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from ..config import SecuritySettings, get_settings
from ..plugins.loader import HelperResolver
from ..plugins.registry import PluginRegistry, security_providers
from .chain import ChainBuilder, ChainCache
from .interfaces import ResourceMap
from .resources import SecurityHandler, build_resources, security_handlers

logger = structlog.get_logger()


def load_specification(source: Path | str | Mapping[str, Any]) -> dict[str, Any]:
    """
    Load an API document from a YAML/JSON file, or copy a mapping.

    The returned document is always a fresh deep copy, owned by the caller.
    """
    if isinstance(source, Mapping):
        return copy.deepcopy(dict(source))

    path = Path(source)
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        document = json.loads(text)
    else:
        document = yaml.safe_load(text)

    if not isinstance(document, dict):
        raise ValueError(f"{path} does not contain an API document")
    return document


@dataclass
class SecurityContext:
    """
    Loaded document, its resources, handlers and chain cache.

    Attributes:
        specification: Live document (flow endpoints merged in)
        resources: Instantiated security resources
        security_handlers: Handlers for flow-capable resources
        chains: Per-operation chain cache
    """
    specification: dict[str, Any]
    resources: ResourceMap
    security_handlers: dict[str, SecurityHandler] = field(default_factory=dict)
    chains: ChainCache | None = None

    def __post_init__(self) -> None:
        if self.chains is None:
            self.chains = ChainCache(ChainBuilder(self.resources))

    @classmethod
    def load(
        cls,
        source: Path | str | Mapping[str, Any],
        settings: SecuritySettings | None = None,
        registry: PluginRegistry = security_providers,
    ) -> "SecurityContext":
        """
        Load a document and build its resources.

        The caller's document is never mutated; flow endpoints are merged
        into a private copy. Any LoadError or MergeError propagates and no
        context is created.
        """
        settings = settings or get_settings()
        specification = load_specification(source)

        resources = build_resources(
            specification,
            resolver=HelperResolver(settings.helpers_path),
            registry=registry,
        )

        logger.info(
            "security_context_loaded",
            resources=sorted(resources),
            paths=len(specification.get("paths") or {}),
        )
        return cls(
            specification=specification,
            resources=resources,
            security_handlers=security_handlers(resources),
        )
