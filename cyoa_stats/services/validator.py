"""
Validator — structural and size checks for one inbound beacon.

Rules run in a fixed order and stop at the first failure:

1. project id and ``data`` present          → MissingField
2. canonical ``data`` within the byte limit → PayloadTooLarge
3. ``data`` is a UTF-8 encodable JSON object → MalformedJSON
4. eventType / timestamp / currentURL set   → MissingPayloadFields

Pure: nothing here touches the store.
"""

from dataclasses import dataclass
from typing import Any

from cyoa_stats.errors import MissingField, MissingPayloadFields, PayloadTooLarge
from cyoa_stats.services.normalizer import (
    PayloadRepresentation,
    canonical_form,
    is_empty,
    normalize,
    utf8_size,
)

REQUIRED_PAYLOAD_FIELDS = ("eventType", "timestamp", "currentURL")


@dataclass(frozen=True)
class ValidatedPayload:
    project_id: str
    canonical: str
    payload: dict


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def missing_payload_fields(payload: dict) -> list[str]:
    """Required fields absent or blank in ``payload``, in declared order."""
    return [name for name in REQUIRED_PAYLOAD_FIELDS if _is_blank(payload.get(name))]


def validate(
    project_id: str | None,
    rep: PayloadRepresentation | None,
    size_limit: int,
) -> ValidatedPayload:
    if _is_blank(project_id) or is_empty(rep):
        raise MissingField()

    canonical = canonical_form(rep)
    if utf8_size(canonical) > size_limit:
        raise PayloadTooLarge()

    canonical, payload = normalize(rep)

    missing = missing_payload_fields(payload)
    if missing:
        raise MissingPayloadFields(missing)

    return ValidatedPayload(project_id=str(project_id), canonical=canonical, payload=payload)
