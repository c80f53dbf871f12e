from __future__ import annotations

import pytest

from fedvlm.errors import MalformedPayloadError
from fedvlm.payload import RawResponse, RawVariantInfo, peek_node_id, validate_payload

pytestmark = pytest.mark.unit


def test_result_sets_alias_and_field_name_both_validate() -> None:
    by_alias = validate_payload(RawResponse, {"resultSets": [1]})
    by_name = validate_payload(RawResponse, {"result_sets": [1]})
    assert by_alias.result_sets == by_name.result_sets == [1]


def test_unknown_fields_are_ignored() -> None:
    info = validate_payload(RawVariantInfo, {"ac": 3, "an": 10, "af": 0.3})
    assert info.ac == 3


def test_validation_error_names_field_and_node() -> None:
    with pytest.raises(MalformedPayloadError) as exc_info:
        validate_payload(RawVariantInfo, {"ac": True}, peer_node_id="2")

    err = exc_info.value
    assert err.field == "ac"
    assert err.peer_node_id == "2"
    assert "from node 2" in str(err)
    assert err.__cause__ is not None


def test_root_level_error_has_no_field() -> None:
    with pytest.raises(MalformedPayloadError) as exc_info:
        validate_payload(RawResponse, "nope")
    assert exc_info.value.field is None
    assert "<root>" in str(exc_info.value)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ({"id": "3"}, "3"),
        ({"id": 3}, "3"),
        ({"id": True}, None),
        ({"id": None}, None),
        ({}, None),
        (["id"], None),
    ],
)
def test_peek_node_id(raw, expected) -> None:
    assert peek_node_id(raw) == expected
