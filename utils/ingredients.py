"""
Ingredient payload normalization.

A multipart form can carry the ingredient list in four shapes. Each shape is
classified into its own input type first, then a single function turns any of
them into the stored ordered list of non-blank strings.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

INDEXED_KEY = re.compile(r"^ingredients\[(\d+)\]$")
LIST_KEYS = ("ingredients", "ingredients[]")


@dataclass(frozen=True)
class JsonEncoded:
    """A single field holding a JSON array, e.g. '["flour", "egg"]'"""
    raw: str


@dataclass(frozen=True)
class NativeList:
    """Repeated `ingredients` / `ingredients[]` fields"""
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Scalar:
    value: Any


@dataclass(frozen=True)
class IndexedKeys:
    """`ingredients[0]`, `ingredients[1]`, ... as (index, value) pairs"""
    items: Tuple[Tuple[int, Any], ...]


IngredientsInput = Union[JsonEncoded, NativeList, Scalar, IndexedKeys]


def _looks_like_json_array(value: str) -> bool:
    if not value.lstrip().startswith("["):
        return False
    try:
        return isinstance(json.loads(value), list)
    except ValueError:
        return False


def read_ingredients(form) -> Optional[IngredientsInput]:
    """
    Classify the ingredient fields of a form (anything with getlist/multi_items).
    Returns None when the form carries no ingredient field at all.
    """
    values = []
    for key in LIST_KEYS:
        values.extend(form.getlist(key))

    if len(values) > 1:
        return NativeList(tuple(values))
    if len(values) == 1:
        value = values[0]
        if isinstance(value, str) and _looks_like_json_array(value):
            return JsonEncoded(value)
        return Scalar(value)

    indexed = []
    for key, value in form.multi_items():
        match = INDEXED_KEY.match(key)
        if match:
            indexed.append((int(match.group(1)), value))
    if indexed:
        return IndexedKeys(tuple(indexed))
    return None


def _clean(values) -> List[str]:
    cleaned = []
    for value in values:
        if value is None or not isinstance(value, (str, int, float)):
            continue
        text = str(value).strip()
        if text:
            cleaned.append(text)
    return cleaned


def normalize_ingredients(payload: IngredientsInput) -> List[str]:
    """Turn any ingredient encoding into an ordered list of non-blank strings"""
    if isinstance(payload, JsonEncoded):
        return _clean(json.loads(payload.raw))
    if isinstance(payload, NativeList):
        return _clean(payload.values)
    if isinstance(payload, Scalar):
        return _clean([payload.value])
    if isinstance(payload, IndexedKeys):
        return _clean(value for _, value in sorted(payload.items, key=lambda item: item[0]))
    raise TypeError(f"Unsupported ingredients payload: {payload!r}")
