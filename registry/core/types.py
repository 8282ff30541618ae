# registry/core/types.py
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional, Tuple, Union

from registry.core.encoding import id_to_hex, id_from_hex

Identity = str

ZERO_IDENTITY = "0x" + "0" * 40


def is_null_identity(identity: Optional[str]) -> bool:
    """The zero/null identity never legitimately submits or administers anything."""
    if identity is None:
        return True
    stripped = identity.strip()
    return not stripped or stripped.lower() == ZERO_IDENTITY


@dataclass(frozen=True)
class ResearchPayload:
    """Schema-specific fields of a research-data record."""
    title: str
    description: str = ""
    authors: Tuple[str, ...] = ()
    metadata_uri: str = ""                  # e.g. ipfs://... pointing at the metadata document

    def __post_init__(self):
        # a bare string is one author, not a sequence of characters
        authors = (self.authors,) if isinstance(self.authors, str) else tuple(self.authors)
        object.__setattr__(self, "authors", authors)


@dataclass(frozen=True)
class CertificatePayload:
    """Schema-specific fields of an academic certificate."""
    student_name: str
    course_name: str
    issue_date: str = ""                    # ISO 8601 date, opaque to the ledger
    additional_data: str = ""


Payload = Union[ResearchPayload, CertificatePayload]


@dataclass(frozen=True)
class Record:
    """Single stored attestation. Only `is_valid` ever changes, and only true -> false."""
    id: bytes                       # 32-byte derived identifier
    kind: str                       # schema discriminant: "research" | "certificate"
    content_hash: str               # fingerprint of the externally stored artifact
    submitter: Identity
    created_at: int                 # logical timestamp from the clock collaborator
    payload: Payload
    is_valid: bool = True

    @property
    def id_hex(self) -> str:
        return id_to_hex(self.id)

    def exists(self) -> bool:
        return not is_null_identity(self.submitter)

    def revoked(self) -> "Record":
        return replace(self, is_valid=False)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict (canonicalization, storage, export)."""
        payload = asdict(self.payload)
        if "authors" in payload:
            payload["authors"] = list(payload["authors"])
        return {
            "id": self.id_hex,
            "kind": self.kind,
            "content_hash": self.content_hash,
            "submitter": self.submitter,
            "created_at": self.created_at,
            "is_valid": self.is_valid,
            "payload": payload,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Record":
        from registry.core.schema import schema_for

        schema = schema_for(d["kind"])
        return cls(
            id=id_from_hex(d["id"]),
            kind=d["kind"],
            content_hash=d["content_hash"],
            submitter=d["submitter"],
            created_at=int(d["created_at"]),
            payload=schema.payload_type(**d["payload"]),
            is_valid=bool(d.get("is_valid", True)),
        )
