# registry/core/schema.py
from dataclasses import dataclass, fields
from typing import Dict, Tuple, Type

from registry.core.errors import EmptyRequiredField
from registry.core.types import Payload, ResearchPayload, CertificatePayload


@dataclass(frozen=True)
class RecordSchema:
    """
    Describes one record variant. The ledger logic is shared; only the payload
    shape, the required fields and the display field differ per schema.
    """
    name: str                               # discriminant, also the first hash input
    payload_type: Type
    required_fields: Tuple[str, ...]        # payload fields that must be non-blank
    display_field: str                      # carried in the issuance notification
    min_authors: int = 0

    @property
    def field_order(self) -> Tuple[str, ...]:
        """Payload fields in declaration order — the fixed order used for id derivation."""
        return tuple(f.name for f in fields(self.payload_type))

    def field_values(self, payload: Payload) -> list:
        values = []
        for name in self.field_order:
            value = getattr(payload, name)
            values.append(list(value) if isinstance(value, tuple) else value)
        return values

    def display(self, payload: Payload) -> str:
        return getattr(payload, self.display_field)

    def validate(self, content_hash: str, payload: Payload) -> None:
        if not isinstance(payload, self.payload_type):
            raise TypeError(
                f"{self.name} ledger expects {self.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        if _blank(content_hash):
            raise EmptyRequiredField("content_hash")
        for name in self.required_fields:
            if _blank(getattr(payload, name)):
                raise EmptyRequiredField(name)
        if self.min_authors:
            authors = payload.authors
            if len(authors) < self.min_authors or any(_blank(a) for a in authors):
                raise EmptyRequiredField("authors")


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


RESEARCH = RecordSchema(
    name="research",
    payload_type=ResearchPayload,
    required_fields=("title",),
    display_field="title",
    min_authors=1,
)

CERTIFICATE = RecordSchema(
    name="certificate",
    payload_type=CertificatePayload,
    required_fields=("student_name", "course_name"),
    display_field="student_name",
)

SCHEMAS: Dict[str, RecordSchema] = {s.name: s for s in (RESEARCH, CERTIFICATE)}


def schema_for(name: str) -> RecordSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError(f"Unknown record schema: {name!r}")
