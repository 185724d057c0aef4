"""
Tests for flow-endpoint injection.
"""

import copy

import pytest

from specauth.core.auth.merger import (
    OAUTH_SERVICE_PROP,
    flow_endpoint_names,
    flow_template,
    inject_flows,
    normalize_endpoints,
)
from specauth.core.exceptions import (
    DefinitionCollisionError,
    PathCollisionError,
    UnknownFlowEndpointError,
)


def base_document() -> dict:
    return {
        "paths": {"/orders": {"get": {"operationId": "listOrders"}}},
        "definitions": {"Order": {"type": "object"}},
    }


def test_template_endpoints():
    """Test the bundled template offers the standard endpoints."""
    assert flow_endpoint_names() == ["authorize", "invalidate", "refresh", "token"]
    assert "AccessTokenResponse" in flow_template()["definitions"]


def test_inject_token_path():
    """Test injecting a single endpoint under a custom path."""
    document = base_document()

    inject_flows(document, "oauth", {"token": "/accesstoken"})

    injected = document["paths"]["/accesstoken"]
    assert injected[OAUTH_SERVICE_PROP] == "oauth"
    assert injected["post"]["operationId"] == "token"
    assert "/orders" in document["paths"]
    for name in flow_template()["definitions"]:
        assert name in document["definitions"]
    assert "Order" in document["definitions"]


def test_inject_from_list_uses_endpoint_names():
    """Test the list form maps each name to /<name>."""
    document = base_document()

    inject_flows(document, "oauth", ["token", "refresh"])

    assert document["paths"]["/token"][OAUTH_SERVICE_PROP] == "oauth"
    assert document["paths"]["/refresh"][OAUTH_SERVICE_PROP] == "oauth"


def test_injected_items_are_copies():
    """Test tagging an injected path does not touch the template."""
    document = base_document()

    inject_flows(document, "oauth", {"token": "/token"})

    assert OAUTH_SERVICE_PROP not in flow_template()["paths"]["/token"]


def test_creates_missing_sections():
    """Test documents without paths/definitions get them."""
    document = {}

    inject_flows(document, "oauth", {"token": "/token"})

    assert "/token" in document["paths"]
    assert "AccessTokenResponse" in document["definitions"]


@pytest.mark.parametrize("endpoints", [None, {}, []])
def test_empty_endpoints_is_noop(endpoints):
    document = base_document()
    before = copy.deepcopy(document)

    inject_flows(document, "oauth", endpoints)

    assert document == before


def test_path_collision_is_atomic():
    """Test one colliding endpoint leaves the document untouched."""
    document = base_document()
    before = copy.deepcopy(document)

    with pytest.raises(PathCollisionError) as exc_info:
        inject_flows(document, "oauth", {"token": "/orders", "refresh": "/refresh"})

    assert exc_info.value.paths == ["/orders"]
    assert exc_info.value.endpoints == {"token": "/orders"}
    assert "/orders" in str(exc_info.value)
    assert "/refresh" not in str(exc_info.value)
    assert document == before


def test_path_collision_reports_all():
    document = {"paths": {"/token": {}, "/refresh": {}}}

    with pytest.raises(PathCollisionError) as exc_info:
        inject_flows(document, "oauth", ["token", "refresh", "authorize"])

    assert exc_info.value.paths == ["/refresh", "/token"]
    assert exc_info.value.endpoints == {"refresh": "/refresh", "token": "/token"}


def test_endpoints_sharing_a_target_path():
    """Test two endpoints aimed at one path fail instead of overwriting."""
    document = base_document()
    before = copy.deepcopy(document)

    with pytest.raises(PathCollisionError) as exc_info:
        inject_flows(document, "oauth", {"token": "/x", "refresh": "/x"})

    assert exc_info.value.paths == ["/x"]
    assert exc_info.value.endpoints == {"refresh": "/x", "token": "/x"}
    assert "token" in str(exc_info.value)
    assert document == before


def test_definition_collision_is_atomic():
    """Test an existing definition name aborts before mutation."""
    document = base_document()
    document["definitions"]["AccessTokenResponse"] = {"type": "string"}
    before = copy.deepcopy(document)

    with pytest.raises(DefinitionCollisionError) as exc_info:
        inject_flows(document, "oauth", {"token": "/token"})

    assert exc_info.value.definitions == ["AccessTokenResponse"]
    assert document == before


def test_unknown_endpoint_lists_valid_names():
    """Test an endpoint with no template lists every valid name."""
    document = base_document()
    before = copy.deepcopy(document)

    with pytest.raises(UnknownFlowEndpointError) as exc_info:
        inject_flows(document, "oauth", {"token": "/token", "bogus": "/bogus"})

    assert exc_info.value.names == ["bogus"]
    assert exc_info.value.valid == ["authorize", "invalidate", "refresh", "token"]
    for name in ("authorize", "invalidate", "refresh", "token"):
        assert name in str(exc_info.value)
    assert document == before


def test_custom_template():
    template = {
        "paths": {"/issue": {"post": {"operationId": "issue"}}},
        "definitions": {"Issued": {"type": "object"}},
    }
    document = {}

    inject_flows(document, "jwt", ["issue"], template=template)

    assert document["paths"]["/issue"][OAUTH_SERVICE_PROP] == "jwt"
    assert document["definitions"] == {"Issued": {"type": "object"}}


def test_normalize_endpoints():
    assert normalize_endpoints({"token": "/t"}) == {"token": "/t"}
    assert normalize_endpoints(["token"]) == {"token": "/token"}
    assert normalize_endpoints("token") == {"token": "/token"}
    assert normalize_endpoints(None) == {}
