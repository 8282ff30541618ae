# registry/verify/verifier.py
from typing import Optional
from dataclasses import dataclass

from registry.core.types import Record
from registry.records.store import RecordStore


@dataclass
class VerificationResult:
    found: bool
    is_valid: bool = False
    record: Optional[Record] = None
    message: str = ""

    @property
    def record_id(self) -> Optional[bytes]:
        return self.record.id if self.record else None

    def __bool__(self):
        return self.found and self.is_valid

    def __iter__(self):
        # allows `is_valid, record = ledger.verify_by_id(rid)`
        return iter((self.is_valid, self.record))

    def __str__(self):
        if not self.found:
            return self.message or "No matching record"
        status = "valid ✓" if self.is_valid else "REVOKED ✗"
        return f"Record {self.record.id_hex} is {status}"


class VerificationService:
    """
    Read-only lookups over a RecordStore. Holds no state of its own; the
    ledger wraps every call in its shared lock.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def verify_by_id(self, record_id: bytes) -> VerificationResult:
        """Raises NotFound for unknown ids."""
        record = self.store.get(record_id)
        return VerificationResult(
            found=True,
            is_valid=record.is_valid,
            record=record,
            message="Valid record" if record.is_valid else "Record has been revoked",
        )

    def verify_by_content_hash(self, content_hash: str) -> VerificationResult:
        """
        First record (insertion order) whose content hash equals the query.
        Linear in the total number of records — fine at registry scale, not beyond.
        """
        for i in range(self.store.count()):
            record = self.store.get(self.store.id_at(i))
            if record.content_hash == content_hash:
                return VerificationResult(
                    found=True,
                    is_valid=record.is_valid,
                    record=record,
                    message="Valid record" if record.is_valid else "Record has been revoked",
                )
        return VerificationResult(found=False, message=f"No record with content hash '{content_hash}'")

    def is_revoked(self, record_id: bytes) -> bool:
        return not self.store.get(record_id).is_valid
