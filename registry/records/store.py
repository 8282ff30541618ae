# registry/records/store.py
import logging
from typing import Dict, Iterable, List, Optional

from registry.access.controller import AccessController
from registry.core.clock import Clock
from registry.core.errors import AlreadyRevoked, DuplicateIdentifier, IndexOutOfBounds, NotFound
from registry.core.schema import RecordSchema
from registry.core.types import Identity, Payload, Record
from registry.crypto.hashing import IdentifierDeriver
from registry.storage import StorageBackend

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Keyed record map + append-only global index + per-submitter index.

    The three structures only change together, inside `issue` / `revoke`, after
    storage has accepted the write. Callers serialize access (see AttestationLedger).
    """

    def __init__(
        self,
        schema: RecordSchema,
        access: AccessController,
        clock: Clock,
        storage: Optional[StorageBackend] = None,
        ledger_name: str = "default",
    ):
        self.schema = schema
        self.access = access
        self.clock = clock
        self.deriver = IdentifierDeriver(schema)
        self.storage = storage
        self.ledger_name = ledger_name

        self._records: Dict[bytes, Record] = {}
        self._index: List[bytes] = []
        self._by_submitter: Dict[Identity, List[bytes]] = {}

    def restore(self, records: Iterable[Record]) -> None:
        """Rebuild in-memory state from records loaded out of storage (insertion order)."""
        for record in records:
            if record.kind != self.schema.name:
                raise ValueError(
                    f"Ledger '{self.ledger_name}' is a {self.schema.name} ledger "
                    f"but storage holds a {record.kind} record ({record.id_hex})"
                )
            if record.id in self._records:
                raise DuplicateIdentifier(record.id)
            self._insert(record)
            self.clock.observe(record.created_at)

    def _insert(self, record: Record) -> None:
        self._records[record.id] = record
        self._index.append(record.id)
        self._by_submitter.setdefault(record.submitter, []).append(record.id)

    def exists(self, record_id: bytes) -> bool:
        record = self._records.get(record_id)
        return record is not None and record.exists()

    def get(self, record_id: bytes) -> Record:
        if not self.exists(record_id):
            raise NotFound(record_id)
        return self._records[record_id]

    def issue(self, caller: Identity, content_hash: str, payload: Payload) -> Record:
        """
        Gate → validate → derive id → reject duplicates → persist → index.
        Returns the stored record (is_valid=True).
        """
        self.access.require_writer(caller)
        self.schema.validate(content_hash, payload)

        created_at = self.clock.now()
        record_id = self.deriver.derive(content_hash, payload, caller, created_at)
        if self.exists(record_id):
            raise DuplicateIdentifier(record_id)

        record = Record(
            id=record_id,
            kind=self.schema.name,
            content_hash=content_hash,
            submitter=caller,
            created_at=created_at,
            payload=payload,
            is_valid=True,
        )
        if self.storage:
            self.storage.append_record(self.ledger_name, record)
        self._insert(record)

        logger.info(
            "Issued %s record %s by %s", self.schema.name, record.id_hex, caller,
            extra={"ledger": self.ledger_name, "event": "issued", "record_id": record.id_hex, "caller": caller},
        )
        return record

    def revoke(self, caller: Identity, record_id: bytes) -> Record:
        record = self.get(record_id)
        if not record.is_valid:
            raise AlreadyRevoked(record_id)
        self.access.require_revoker(caller, record)

        revoked = record.revoked()
        if self.storage:
            self.storage.mark_revoked(self.ledger_name, record_id)
        self._records[record_id] = revoked

        logger.info(
            "Revoked %s record %s by %s", self.schema.name, revoked.id_hex, caller,
            extra={"ledger": self.ledger_name, "event": "revoked", "record_id": revoked.id_hex, "caller": caller},
        )
        return revoked

    def count(self) -> int:
        return len(self._index)

    def id_at(self, index: int) -> bytes:
        if index < 0 or index >= len(self._index):
            raise IndexOutOfBounds(index, len(self._index))
        return self._index[index]

    def ids_by_submitter(self, identity: Identity) -> List[bytes]:
        """Copy, not a live view."""
        return list(self._by_submitter.get(identity, ()))

    def records(self) -> List[Record]:
        """Snapshot of all records in insertion order."""
        return [self._records[rid] for rid in self._index]
