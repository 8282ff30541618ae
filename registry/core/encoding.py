# registry/core/encoding.py
from typing import Union

from registry.core.errors import NotFound

RECORD_ID_SIZE = 32

RecordIdLike = Union[bytes, str]


def id_to_hex(record_id: bytes) -> str:
    """Render a 32-byte record id as 0x-prefixed lowercase hex."""
    return "0x" + record_id.hex()


def id_from_hex(s: str) -> bytes:
    """Parse 0x-prefixed (or bare) hex back into a record id."""
    s = s.strip()
    if s[:2].lower() == "0x":
        s = s[2:]
    try:
        raw = bytes.fromhex(s)
    except ValueError:
        raise ValueError(f"Record id is not valid hex: {s!r}")
    if len(raw) != RECORD_ID_SIZE:
        raise ValueError(f"Record id must be {RECORD_ID_SIZE} bytes, got {len(raw)}")
    return raw


def as_record_id(value: RecordIdLike) -> bytes:
    """
    Accept raw bytes or the hex rendering; always return raw bytes.

    Raw bytes of the wrong length can never name a stored record, so they
    raise NotFound. A string that is not 32 bytes of hex raises ValueError.
    """
    if isinstance(value, str):
        return id_from_hex(value)
    raw = bytes(value)
    if len(raw) != RECORD_ID_SIZE:
        raise NotFound(raw)
    return raw
