# registry/crypto/hashing.py
import hashlib
import logging

from registry.core.canon import canonical_json
from registry.core.schema import RecordSchema
from registry.core.types import Payload

logger = logging.getLogger(__name__)


def sha256_hex(data: bytes) -> str:
    """Hex SHA-256 — handy for fingerprinting an artifact before registering it."""
    return hashlib.sha256(data).hexdigest()


def derive_record_id(
    schema: RecordSchema,
    content_hash: str,
    payload: Payload,
    submitter: str,
    timestamp: int,
) -> bytes:
    """
    sha256 over the RFC 8785 encoding of a positional JSON array:
    [schema, [payload fields in schema order], content_hash, submitter, timestamp]

    Every string is individually quoted/escaped and every field keeps its slot,
    so a separator inside a title can never shift a boundary between fields.
    """
    preimage = [
        schema.name,
        schema.field_values(payload),
        content_hash,
        submitter,
        timestamp,
    ]
    return hashlib.sha256(canonical_json(preimage)).digest()


class IdentifierDeriver:
    """Derives record ids for one schema. Same inputs at the same logical time → same id."""

    def __init__(self, schema: RecordSchema):
        self.schema = schema

    def derive(self, content_hash: str, payload: Payload, submitter: str, timestamp: int) -> bytes:
        record_id = derive_record_id(self.schema, content_hash, payload, submitter, timestamp)
        logger.debug("Derived %s id 0x%s for %s @ %d", self.schema.name, record_id.hex(), submitter, timestamp)
        return record_id
