"""
Resolution of string references to callables.

Two kinds of references appear in a document's service declarations:

- ``provider``: a security provider, resolved by :func:`load_provider`
  through the registration table, entry points, then a dotted import.
- option values such as ``passwordCheck``: helper functions living in
  ``<helpers_path>/<module>.py``, resolved by :class:`HelperResolver`.
"""
from __future__ import annotations

from typing import Any, Callable
from pathlib import Path
import importlib
import importlib.util
import logging
import re

from ..exceptions import HelperLoadError, HelperNotFoundError, ProviderLoadError
from .registry import PluginRegistry, security_providers

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "specauth.providers"
DEFAULT_HELPERS_PATH = "api/helpers"


class HelperResolver:
    """
    Locates helper functions by ``"module.function"`` or ``"module:function"``.

    Example:
        resolver = HelperResolver("api/helpers")
        check = resolver.resolve("oauth passwordCheck", "passwords.check")
        # -> function ``check`` from api/helpers/passwords.py
    """

    def __init__(self, search_path: Path | str = DEFAULT_HELPERS_PATH):
        self.search_path = Path(search_path)

    def resolve(self, owner_label: str, reference: Any) -> Callable:
        """
        Resolve a helper reference to a callable.

        Args:
            owner_label: Who asked for it, used in error messages
            reference: Helper reference string, or a callable

        Raises:
            HelperLoadError: If the helper module cannot be loaded
            HelperNotFoundError: If the module has no such function
        """
        if callable(reference):
            return reference
        if not isinstance(reference, str):
            raise HelperNotFoundError(owner_label, repr(reference))

        module_name, function_name = split_reference(reference)
        if not module_name or not function_name:
            raise HelperNotFoundError(owner_label, reference)

        module = self._load_module(owner_label, reference, module_name)

        function = getattr(module, function_name, None)
        if not callable(function):
            raise HelperNotFoundError(owner_label, reference)

        logger.debug(f"Resolved helper {reference} for {owner_label}")
        return function

    def _load_module(self, owner_label: str, reference: str, module_name: str) -> Any:
        file_path = self.search_path / f"{module_name}.py"
        if not file_path.is_file():
            raise HelperLoadError(
                owner_label, reference, f"{file_path} does not exist"
            )

        spec = importlib.util.spec_from_file_location(
            f"specauth_helpers.{module_name}", file_path
        )
        if spec is None or spec.loader is None:
            raise HelperLoadError(owner_label, reference, f"cannot import {file_path}")

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise HelperLoadError(owner_label, reference, str(e)) from e
        return module


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``"module.function"`` / ``"module:function"`` at the last separator."""
    parts = re.split(r"[.:](?=[^.:]*$)", reference.strip(), maxsplit=1)
    if len(parts) != 2:
        return "", ""
    return parts[0], parts[1]


def load_provider(
    reference: str,
    registry: PluginRegistry = security_providers,
) -> Callable[..., Any]:
    """
    Resolve a provider reference to its factory.

    Lookup order:
    1. Explicit registration table
    2. Entry points in the ``specauth.providers`` group
    3. Dotted import: ``"package.module"`` (uses its ``create``) or
       ``"package.module:attr"``

    Raises:
        ProviderLoadError: If nothing matches
    """
    if not isinstance(reference, str) or not reference:
        raise ProviderLoadError(repr(reference), "provider must be a non-empty string")

    factory = registry.factory(reference)
    if factory is not None:
        return factory

    factory = _load_from_entrypoints(reference)
    if factory is not None:
        return factory

    module_name, _, attr = reference.partition(":")
    attr = attr or "create"
    try:
        module = importlib.import_module(module_name)
    except (ImportError, ValueError) as e:
        raise ProviderLoadError(reference, str(e)) from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ProviderLoadError(reference, f"module has no callable '{attr}'")

    logger.info(f"Loaded security provider from module: {reference}")
    return factory


def _load_from_entrypoints(reference: str) -> Callable[..., Any] | None:
    from importlib.metadata import entry_points

    for ep in entry_points(group=ENTRYPOINT_GROUP):
        if ep.name != reference:
            continue
        try:
            factory = ep.load()
        except Exception as e:
            raise ProviderLoadError(reference, str(e)) from e
        logger.info(f"Loaded security provider from entrypoint: {ep.name}")
        return factory
    return None
