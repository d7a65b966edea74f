"""Regression tests for tolerant catalog decoding."""

import json

import pytest

from offviewer.decoding import decode_detail, decode_search
from offviewer.errors import DecodeError
from offviewer.models import NO_INGREDIENTS, UNNAMED_PRODUCT, ProductDetail, ProductSummary


def _body(payload) -> bytes:
    return json.dumps(payload).encode()


def test_decode_search_keeps_only_entries_with_a_code():
    """Bad entries are skipped one by one instead of failing the batch."""

    entries = [
        {"code": "1", "product_name": "Milk"},
        {"product_name": "no code"},
        {"code": "", "product_name": "blank code"},
        {"code": None, "product_name": "null code"},
        "not an object",
        {"code": 42, "product_name": "numeric code"},
    ]

    products = decode_search(200, _body({"products": entries}))

    assert [p.code for p in products] == ["1", "42"]
    assert len(products) == 2


def test_decode_search_applies_name_fallback():
    payload = {
        "products": [
            {"code": "1"},
            {"code": "2", "product_name": None},
            {"code": "3", "product_name": "   "},
            {"code": "4", "product_name": ["not", "text"]},
            {"code": "5", "product_name": " Oat Drink "},
        ]
    }

    products = decode_search(200, _body(payload))

    assert [p.name for p in products] == [UNNAMED_PRODUCT] * 4 + ["Oat Drink"]


def test_decode_search_keeps_entry_with_only_a_code():
    products = decode_search(200, _body({"products": [{"code": "0001"}]}))

    assert products == [ProductSummary(code="0001", name=UNNAMED_PRODUCT)]


def test_decode_search_empty_list_is_not_an_error():
    assert decode_search(200, _body({"count": 0, "products": []})) == []


def test_decode_search_is_repeatable():
    body = _body({"products": [{"code": "1", "product_name": "A"}, {"code": "2"}]})

    assert decode_search(200, body) == decode_search(200, body)


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_decode_search_rejects_non_success_status_without_parsing(status):
    with pytest.raises(DecodeError) as excinfo:
        decode_search(status, b"<html>not json</html>")

    assert excinfo.value.kind == "http_status"
    assert excinfo.value.status == status
    assert str(status) in excinfo.value.describe()


@pytest.mark.parametrize(
    "body, kind",
    [
        (b"", "empty"),
        (b"  \n", "empty"),
        (b"{not json", "malformed"),
        (b"\xc3\x28", "malformed"),
        (b"[]", "malformed"),
        (b'{"count": 3}', "malformed"),
        (b'{"products": {"code": "1"}}', "malformed"),
    ],
)
def test_decode_search_structural_failures(body, kind):
    with pytest.raises(DecodeError) as excinfo:
        decode_search(200, body)

    assert excinfo.value.kind == kind


def test_decode_detail_uses_ingredients_fallback():
    payload = {"code": "123", "status": 1, "product": {"product_name": "Milk"}}

    detail = decode_detail(200, _body(payload), "123")

    assert detail == ProductDetail(code="123", name="Milk", ingredients=NO_INGREDIENTS)


def test_decode_detail_reads_ingredients_and_product_code():
    payload = {
        "status": 1,
        "product": {"code": "3017620422003", "product_name": "Nutella", "ingredients_text": "Sugar, palm oil"},
    }

    detail = decode_detail(200, _body(payload), "requested")

    assert detail.code == "3017620422003"
    assert detail.ingredients == "Sugar, palm oil"


def test_decode_detail_falls_back_to_requested_code_and_names():
    detail = decode_detail(200, _body({"product": {"ingredients_text": None}}), "999")

    assert detail == ProductDetail(code="999", name=UNNAMED_PRODUCT, ingredients=NO_INGREDIENTS)


def test_decode_detail_unknown_product_is_empty():
    payload = {"code": "000", "status": 0, "status_verbose": "product not found"}

    with pytest.raises(DecodeError) as excinfo:
        decode_detail(200, _body(payload), "000")

    assert excinfo.value.kind == "empty"
    assert excinfo.value.describe() == "product not found"


def test_decode_detail_without_product_object_is_malformed():
    with pytest.raises(DecodeError) as excinfo:
        decode_detail(200, _body({"status": 1, "product": "Milk"}), "1")

    assert excinfo.value.kind == "malformed"
