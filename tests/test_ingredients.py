import pytest
from starlette.datastructures import FormData

from utils.ingredients import (
    IndexedKeys,
    JsonEncoded,
    NativeList,
    Scalar,
    normalize_ingredients,
    read_ingredients,
)


@pytest.mark.parametrize(
    "items,expected_type",
    (
        ([("ingredients", '["pasta", "salt"]')], JsonEncoded),
        ([("ingredients", "pasta"), ("ingredients", "salt")], NativeList),
        ([("ingredients[]", "pasta"), ("ingredients[]", "salt")], NativeList),
        ([("ingredients", "pasta")], Scalar),
        ([("ingredients[0]", "pasta"), ("ingredients[1]", "salt")], IndexedKeys),
    ),
)
def test_read_ingredients_classifies_each_encoding(items, expected_type):
    payload = read_ingredients(FormData(items + [("title", "Pasta")]))

    assert isinstance(payload, expected_type)
    assert normalize_ingredients(payload) in (["pasta", "salt"], ["pasta"])


def test_all_encodings_normalize_to_same_sequence():
    forms = [
        [("ingredients", '["pasta", " salt ", ""]')],
        [("ingredients", "pasta"), ("ingredients", "salt"), ("ingredients", "  ")],
        [("ingredients[1]", "salt"), ("ingredients[0]", "pasta"), ("ingredients[2]", "")],
    ]

    results = [normalize_ingredients(read_ingredients(FormData(items))) for items in forms]

    assert results == [["pasta", "salt"]] * 3


def test_single_string_becomes_one_item_list():
    assert normalize_ingredients(read_ingredients(FormData([("ingredients", " pasta ")]))) == ["pasta"]


def test_indexed_keys_follow_numeric_order():
    items = [("ingredients[%d]" % i, "item-%d" % i) for i in (10, 2, 0, 1)]

    payload = read_ingredients(FormData(items))

    assert normalize_ingredients(payload) == ["item-0", "item-1", "item-2", "item-10"]


def test_json_value_that_is_not_a_list_is_kept_as_scalar():
    payload = read_ingredients(FormData([("ingredients", '{"a": 1}')]))

    assert isinstance(payload, Scalar)
    assert normalize_ingredients(payload) == ['{"a": 1}']


def test_json_array_drops_non_text_entries():
    assert normalize_ingredients(JsonEncoded('["egg", null, 2, {"x": 1}, "  "]')) == ["egg", "2"]


def test_missing_ingredients_is_none():
    assert read_ingredients(FormData([("title", "Pasta")])) is None


def test_only_blank_values_normalize_to_empty_list():
    payload = read_ingredients(FormData([("ingredients", ""), ("ingredients", "   ")]))

    assert normalize_ingredients(payload) == []


def test_unknown_payload_type_is_rejected():
    with pytest.raises(TypeError):
        normalize_ingredients(["pasta"])
