# registry/records/ledger.py
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from registry.access.controller import AccessController
from registry.access.directory import IdentityDirectory
from registry.core.canon import canonical_json_str
from registry.core.clock import Clock, SystemClock
from registry.core.encoding import RecordIdLike, as_record_id
from registry.core.events import (
    Event,
    EventBus,
    OwnershipTransferred,
    RecordIssued,
    RecordRevoked,
    WriterAdded,
    WriterRemoved,
)
from registry.core.schema import CERTIFICATE, RESEARCH, RecordSchema
from registry.core.types import CertificatePayload, Identity, Payload, Record, ResearchPayload
from registry.records.locking import ReadWriteLock
from registry.records.store import RecordStore
from registry.storage import StorageBackend, create_storage
from registry.verify.verifier import VerificationResult, VerificationService

logger = logging.getLogger(__name__)


class AttestationLedger:
    """
    One registry instance for one record schema: directory, access policy,
    record store and verification behind a single lock.

    Mutations run under the exclusive side of the lock and are published as
    events (in commit order) once the lock is released. Reads share the lock,
    so they never observe a half-applied mutation.
    """

    def __init__(
        self,
        schema: RecordSchema,
        owner: Identity,
        clock: Optional[Clock] = None,
        storage: Optional[Union[StorageBackend, str]] = None,
        name: Optional[str] = None,
        events: Optional[EventBus] = None,
    ):
        self.schema = schema
        self.name = name or schema.name
        self.clock = clock or SystemClock()
        self.events = events or EventBus()

        opened_here = isinstance(storage, str)
        if opened_here:
            stripped = storage.strip()
            if stripped.startswith("sqlite://"):
                storage = create_storage(stripped)
            elif stripped:
                # plain file path → SQLite
                storage = create_storage(f"sqlite://{stripped}")
            else:
                storage = None
        self.storage: Optional[StorageBackend] = storage

        try:
            self._load_state(owner)
        except Exception:
            # a connection this constructor opened has no other owner to close it
            if opened_here and self.storage:
                self.storage.close()
                self.storage = None
            raise

    def _load_state(self, owner: Identity) -> None:
        writers: set = set()
        stored_owner = self.storage.load_owner(self.name) if self.storage else None
        if stored_owner is not None:
            if stored_owner != owner:
                logger.info("Ledger %s restored with stored owner %s (ignoring %s)", self.name, stored_owner, owner)
            owner = stored_owner
            writers = self.storage.load_writers(self.name)

        self.directory = IdentityDirectory(owner, writers, storage=self.storage, ledger_name=self.name)
        if self.storage and stored_owner is None:
            self.storage.save_owner(self.name, owner)
        self.access = AccessController(self.directory)
        self.store = RecordStore(self.schema, self.access, self.clock, storage=self.storage, ledger_name=self.name)
        self.verifier = VerificationService(self.store)

        self._lock = ReadWriteLock()
        self._publish_lock = threading.RLock()

        if self.storage:
            self.store.restore(self.storage.load_records(self.name))
            logger.info("Loaded %d records for ledger %s", self.store.count(), self.name)

    def _mutate(self, apply: Callable[[], Event]):
        with self._publish_lock:
            with self._lock.write():
                event = apply()
            self.events.publish(event)

    # ── directory ────────────────────────────────────────────────────────────

    @property
    def owner(self) -> Identity:
        with self._lock.read():
            return self.directory.owner

    def is_writer(self, identity: Optional[Identity]) -> bool:
        with self._lock.read():
            return self.access.is_writer(identity)

    def add_writer(self, caller: Identity, identity: Identity) -> None:
        def apply():
            self.directory.add_writer(caller, identity)
            return WriterAdded(identity=identity, added_by=caller)
        self._mutate(apply)

    def remove_writer(self, caller: Identity, identity: Identity) -> None:
        def apply():
            self.directory.remove_writer(caller, identity)
            return WriterRemoved(identity=identity, removed_by=caller)
        self._mutate(apply)

    def transfer_ownership(self, caller: Identity, new_owner: Identity) -> None:
        def apply():
            previous = self.directory.transfer_ownership(caller, new_owner)
            return OwnershipTransferred(previous_owner=previous, new_owner=new_owner)
        self._mutate(apply)

    # ── issuance / revocation ────────────────────────────────────────────────

    def issue(self, caller: Identity, content_hash: str, payload: Payload) -> bytes:
        """Store a new record and return its 32-byte id."""
        issued: List[Record] = []

        def apply():
            record = self.store.issue(caller, content_hash, payload)
            issued.append(record)
            return RecordIssued(
                record_id=record.id,
                display=self.schema.display(payload),
                submitter=caller,
                kind=self.schema.name,
            )
        self._mutate(apply)
        return issued[0].id

    def revoke(self, caller: Identity, record_id: RecordIdLike) -> None:
        rid = as_record_id(record_id)

        def apply():
            self.store.revoke(caller, rid)
            return RecordRevoked(record_id=rid, revoker=caller)
        self._mutate(apply)

    # ── enumeration ──────────────────────────────────────────────────────────

    def count_records(self) -> int:
        with self._lock.read():
            return self.store.count()

    def record_id_at(self, index: int) -> bytes:
        with self._lock.read():
            return self.store.id_at(index)

    def records_by_submitter(self, identity: Identity) -> List[bytes]:
        with self._lock.read():
            return self.store.ids_by_submitter(identity)

    def iter_records(self) -> List[Record]:
        with self._lock.read():
            return self.store.records()

    def get_record(self, record_id: RecordIdLike) -> Record:
        rid = as_record_id(record_id)
        with self._lock.read():
            return self.store.get(rid)

    # ── verification ─────────────────────────────────────────────────────────

    def verify_by_id(self, record_id: RecordIdLike) -> VerificationResult:
        rid = as_record_id(record_id)
        with self._lock.read():
            return self.verifier.verify_by_id(rid)

    def verify_by_content_hash(self, content_hash: str) -> VerificationResult:
        with self._lock.read():
            return self.verifier.verify_by_content_hash(content_hash)

    def is_revoked(self, record_id: RecordIdLike) -> bool:
        rid = as_record_id(record_id)
        with self._lock.read():
            return self.verifier.is_revoked(rid)

    # ── export / lifecycle ───────────────────────────────────────────────────

    def export_jsonl(self, path: Union[str, Path]) -> int:
        """Write every record as one canonical JSON line, insertion order. Returns the count."""
        records = self.iter_records()
        with open(path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(canonical_json_str(record.to_dict()))
                f.write("\n")
        logger.info("Exported %d %s records to %s", len(records), self.name, path)
        return len(records)

    def close(self) -> None:
        """Release the storage connection, if any."""
        if self.storage:
            self.storage.close()
            logger.info("Storage closed for ledger %s", self.name)
            self.storage = None
            self.directory.storage = None
            self.store.storage = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ResearchRegistry(AttestationLedger):
    """Research-data records: title, description, authors, metadata URI."""

    def __init__(self, owner: Identity, **kwargs):
        super().__init__(RESEARCH, owner, **kwargs)

    def register_research(
        self,
        caller: Identity,
        *,
        title: str,
        description: str,
        authors: Sequence[str],
        content_hash: str,
        metadata_uri: str = "",
    ) -> bytes:
        payload = ResearchPayload(
            title=title,
            description=description,
            authors=authors,
            metadata_uri=metadata_uri,
        )
        return self.issue(caller, content_hash, payload)


class CertificateRegistry(AttestationLedger):
    """Academic certificates: student, course, issue date, free-form extra data."""

    def __init__(self, owner: Identity, **kwargs):
        super().__init__(CERTIFICATE, owner, **kwargs)

    def issue_certificate(
        self,
        caller: Identity,
        *,
        student_name: str,
        course_name: str,
        content_hash: str,
        issue_date: str = "",
        additional_data: str = "",
    ) -> bytes:
        payload = CertificatePayload(
            student_name=student_name,
            course_name=course_name,
            issue_date=issue_date,
            additional_data=additional_data,
        )
        return self.issue(caller, content_hash, payload)
