"""
Normalizer — one canonical form for beacon payloads.

Clients send ``data`` either as a JSON-encoded string (the bundled
``logger.js`` does this) or as an already-parsed object. Both are folded
into ``(canonical_string, parsed_object)`` here:

- ``RawString``: the text is kept verbatim and only parsed to check it.
- ``StructuredValue``: serialized compactly, keys in received order.

The canonical string is what gets stored and hashed, so deduplication is
syntactic: the same event sent once as a string and once as an object can
produce two different ``data_hash`` values.
"""

import json
from dataclasses import dataclass
from typing import Any, Union

from cyoa_stats.errors import MalformedJSON


@dataclass(frozen=True)
class RawString:
    text: str


@dataclass(frozen=True)
class StructuredValue:
    value: Any


PayloadRepresentation = Union[RawString, StructuredValue]


def classify(data: Any) -> PayloadRepresentation | None:
    """Wrap inbound ``data`` in its representation; ``None`` when absent."""
    if data is None:
        return None
    if isinstance(data, str):
        return RawString(data)
    return StructuredValue(data)


def is_empty(rep: PayloadRepresentation | None) -> bool:
    if rep is None:
        return True
    if isinstance(rep, RawString):
        return rep.text.strip() == ""
    return rep.value in ({}, [], "")


def canonical_form(rep: PayloadRepresentation) -> str:
    if isinstance(rep, RawString):
        return rep.text
    # Matches JSON.stringify output on the client side
    return json.dumps(rep.value, separators=(",", ":"), ensure_ascii=False)


def parse(text: str) -> dict:
    """Parse a canonical string; only JSON objects are valid payloads."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        raise MalformedJSON()
    if not isinstance(parsed, dict):
        raise MalformedJSON("Invalid JSON format: data must be a JSON object")
    return parsed


def utf8_size(text: str) -> int:
    """Encoded length in bytes; lone surrogates count as three bytes each."""
    return len(text.encode("utf-8", "surrogatepass"))


def ensure_encodable(text: str) -> str:
    # A \udXXX escape with no partner decodes to a lone surrogate, which
    # can be neither hashed nor stored as UTF-8.
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise MalformedJSON("Invalid JSON format: unpaired surrogate in data")
    return text


def normalize(rep: PayloadRepresentation) -> tuple[str, dict]:
    """Return ``(canonical_string, parsed_payload)``."""
    canonical = ensure_encodable(canonical_form(rep))
    if isinstance(rep, RawString):
        payload = parse(canonical)
        # the text itself may hold the escape, so check what it parsed to
        ensure_encodable(json.dumps(payload, ensure_ascii=False))
        return canonical, payload
    if not isinstance(rep.value, dict):
        raise MalformedJSON("Invalid JSON format: data must be a JSON object")
    return canonical, rep.value
