"""
Tests for helper resolution and provider loading.
"""

import json
import sys

import pytest

from specauth.core.exceptions import (
    HelperLoadError,
    HelperNotFoundError,
    ProviderLoadError,
)
from specauth.core.plugins.loader import HelperResolver, load_provider, split_reference
from specauth.core.plugins.registry import PluginRegistry

from _providers import MemoryOAuth


# ============ Helper Resolver ============


def test_resolve_dotted_reference(helpers_dir):
    """Test resolving "module.function"."""
    resolver = HelperResolver(helpers_dir)

    check = resolver.resolve("oauth passwordCheck", "passwords.check")

    assert check("alice", "secret") is True
    assert check("alice", "wrong") is False


def test_resolve_colon_reference(helpers_dir):
    """Test resolving "module:function"."""
    resolver = HelperResolver(helpers_dir)

    check = resolver.resolve("oauth passwordCheck", "passwords:check")

    assert check("alice", "secret") is True


def test_resolve_callable_passthrough(helpers_dir):
    """Test that an already callable reference is returned unchanged."""
    resolver = HelperResolver(helpers_dir)

    def check(username, password):
        return True

    assert resolver.resolve("oauth passwordCheck", check) is check


def test_missing_function_names_owner_and_reference(helpers_dir):
    """Test HelperNotFoundError carries the owner label and reference."""
    resolver = HelperResolver(helpers_dir)

    with pytest.raises(HelperNotFoundError) as exc_info:
        resolver.resolve("oauth passwordCheck", "passwords.nope")

    assert exc_info.value.owner_label == "oauth passwordCheck"
    assert exc_info.value.reference == "passwords.nope"
    assert "oauth passwordCheck" in str(exc_info.value)
    assert "passwords.nope" in str(exc_info.value)


def test_non_callable_attribute_is_not_found(helpers_dir):
    """Test that a non-callable attribute is treated as missing."""
    resolver = HelperResolver(helpers_dir)

    with pytest.raises(HelperNotFoundError):
        resolver.resolve("oauth passwordCheck", "passwords.NOT_CALLABLE")


def test_reference_without_module_is_not_found(helpers_dir):
    """Test a bare name cannot be resolved."""
    resolver = HelperResolver(helpers_dir)

    with pytest.raises(HelperNotFoundError):
        resolver.resolve("oauth passwordCheck", "check")


def test_missing_module_fails_to_load(helpers_dir):
    """Test a helper module that does not exist."""
    resolver = HelperResolver(helpers_dir)

    with pytest.raises(HelperLoadError):
        resolver.resolve("oauth passwordCheck", "missing.check")


def test_broken_module_fails_to_load(helpers_dir):
    """Test a helper module that does not compile."""
    resolver = HelperResolver(helpers_dir)

    with pytest.raises(HelperLoadError):
        resolver.resolve("oauth passwordCheck", "broken.check")


def test_resolution_does_not_register_modules(helpers_dir):
    """Test helper modules are not left in sys.modules."""
    resolver = HelperResolver(helpers_dir)

    resolver.resolve("oauth passwordCheck", "passwords.check")

    assert "specauth_helpers.passwords" not in sys.modules


def test_default_search_path():
    """Test the default helpers location."""
    assert str(HelperResolver().search_path) == "api/helpers"


def test_split_reference():
    assert split_reference("passwords.check") == ("passwords", "check")
    assert split_reference("pkg.passwords:check") == ("pkg.passwords", "check")
    assert split_reference("check") == ("", "")


# ============ Provider Loading ============


def test_load_registered_provider():
    """Test the registration table is consulted first."""
    registry = PluginRegistry("test")
    registry.register("memory-oauth", MemoryOAuth)

    assert load_provider("memory-oauth", registry) is MemoryOAuth


def test_load_provider_by_module_attribute():
    """Test "module:attr" import."""
    registry = PluginRegistry("test")

    assert load_provider("json:loads", registry) is json.loads


def test_load_provider_module_without_create():
    """Test a module reference needs a callable ``create``."""
    registry = PluginRegistry("test")

    with pytest.raises(ProviderLoadError) as exc_info:
        load_provider("json", registry)

    assert "create" in str(exc_info.value)


def test_load_unknown_provider():
    """Test an unknown provider raises ProviderLoadError."""
    registry = PluginRegistry("test")

    with pytest.raises(ProviderLoadError) as exc_info:
        load_provider("volos-oauth-nonexistent", registry)

    assert exc_info.value.provider == "volos-oauth-nonexistent"


def test_load_provider_requires_string():
    registry = PluginRegistry("test")

    with pytest.raises(ProviderLoadError):
        load_provider(None, registry)


# ============ Registry ============


def test_registry_register_and_unregister():
    registry = PluginRegistry("test")

    @registry.provider("memory-oauth")
    def create(options):
        return MemoryOAuth(options)

    assert registry.has("memory-oauth")
    assert registry.list() == ["memory-oauth"]
    assert registry.factory("memory-oauth") is create

    assert registry.unregister("memory-oauth") is True
    assert registry.unregister("memory-oauth") is False
    assert registry.factory("memory-oauth") is None
