# registry/access/directory.py
import logging
from typing import Iterable, Optional, Set

from registry.core.errors import (
    AlreadyAuthorized,
    CannotRemoveOwner,
    InvalidIdentity,
    NotAuthorized,
    Unauthorized,
)
from registry.core.types import Identity, is_null_identity
from registry.storage import StorageBackend

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """
    Owner plus the explicit writer set for one ledger.

    Admin mutations are owner-only. Each one checks every precondition, writes
    through to storage (if any) and only then touches memory.
    """

    def __init__(
        self,
        owner: Identity,
        writers: Optional[Iterable[Identity]] = None,
        storage: Optional[StorageBackend] = None,
        ledger_name: str = "default",
    ):
        if is_null_identity(owner):
            raise InvalidIdentity(owner)
        self._owner = owner
        self._writers: Set[Identity] = set(writers or ())
        self.storage = storage
        self.ledger_name = ledger_name

    @property
    def owner(self) -> Identity:
        return self._owner

    def has_writer_flag(self, identity: Optional[Identity]) -> bool:
        """Explicit flag only; the owner override lives in AccessController."""
        return identity in self._writers

    def writers(self) -> Set[Identity]:
        return set(self._writers)

    def _require_owner(self, caller: Optional[Identity], action: str) -> None:
        if is_null_identity(caller) or caller != self._owner:
            logger.warning(
                "Rejected %s by non-owner %r on ledger %s", action, caller, self.ledger_name,
                extra={"ledger": self.ledger_name, "event": "rejected", "caller": caller},
            )
            raise Unauthorized(caller, action)

    def add_writer(self, caller: Identity, identity: Identity) -> None:
        self._require_owner(caller, "add writers")
        if is_null_identity(identity):
            raise InvalidIdentity(identity)
        if identity in self._writers:
            raise AlreadyAuthorized(identity)

        if self.storage:
            self.storage.set_writer(self.ledger_name, identity, True)
        self._writers.add(identity)
        logger.info(
            "Writer %s added to ledger %s", identity, self.ledger_name,
            extra={"ledger": self.ledger_name, "event": "writer_added", "caller": caller},
        )

    def remove_writer(self, caller: Identity, identity: Identity) -> None:
        self._require_owner(caller, "remove writers")
        if identity not in self._writers and identity != self._owner:
            raise NotAuthorized(identity)
        if identity == self._owner:
            raise CannotRemoveOwner(identity)

        if self.storage:
            self.storage.set_writer(self.ledger_name, identity, False)
        self._writers.discard(identity)
        logger.info(
            "Writer %s removed from ledger %s", identity, self.ledger_name,
            extra={"ledger": self.ledger_name, "event": "writer_removed", "caller": caller},
        )

    def transfer_ownership(self, caller: Identity, new_owner: Identity) -> Identity:
        """Reassign the owner. The old owner's explicit writer flag is left as it was."""
        self._require_owner(caller, "transfer ownership")
        if is_null_identity(new_owner):
            raise InvalidIdentity(new_owner)

        previous = self._owner
        if self.storage:
            self.storage.save_owner(self.ledger_name, new_owner)
        self._owner = new_owner
        logger.info(
            "Ownership of ledger %s transferred %s -> %s", self.ledger_name, previous, new_owner,
            extra={"ledger": self.ledger_name, "event": "ownership_transferred", "caller": caller},
        )
        return previous
