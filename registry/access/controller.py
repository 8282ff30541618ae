# registry/access/controller.py
import logging
from typing import Optional

from registry.access.directory import IdentityDirectory
from registry.core.errors import Unauthorized
from registry.core.types import Identity, Record, is_null_identity

logger = logging.getLogger(__name__)


class AccessController:
    """Stateless role policy evaluated against the directory on every call."""

    def __init__(self, directory: IdentityDirectory):
        self.directory = directory

    def is_writer(self, identity: Optional[Identity]) -> bool:
        if is_null_identity(identity):
            return False
        return identity == self.directory.owner or self.directory.has_writer_flag(identity)

    def require_writer(self, caller: Optional[Identity], action: str = "issue records") -> None:
        if not self.is_writer(caller):
            logger.warning(
                "Rejected %s by non-writer %r", action, caller,
                extra={"ledger": self.directory.ledger_name, "event": "rejected", "caller": caller},
            )
            raise Unauthorized(caller, action)

    def can_revoke(self, caller: Optional[Identity], record: Record) -> bool:
        # Owner, or the original submitter even if no longer a writer. Never any other writer.
        if is_null_identity(caller):
            return False
        return caller == self.directory.owner or caller == record.submitter

    def require_revoker(self, caller: Optional[Identity], record: Record) -> None:
        if not self.can_revoke(caller, record):
            logger.warning(
                "Rejected revocation of %s by %r", record.id_hex, caller,
                extra={"ledger": self.directory.ledger_name, "event": "rejected", "record_id": record.id_hex, "caller": caller},
            )
            raise Unauthorized(caller, f"revoke record {record.id_hex}")
