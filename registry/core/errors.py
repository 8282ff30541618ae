# registry/core/errors.py
"""
Rejected-request taxonomy. Every error is a precondition failure raised before
any state is touched, so catching one never leaves the ledger half-applied.
"""

from typing import Optional


def _fmt_id(record_id: Optional[bytes]) -> str:
    return "0x" + record_id.hex() if record_id is not None else "<none>"


class RegistryError(Exception):
    """Base class for all rejected ledger operations."""


class Unauthorized(RegistryError):
    def __init__(self, caller: Optional[str], action: str):
        self.caller = caller
        self.action = action
        super().__init__(f"'{caller}' is not authorized to {action}")


class InvalidIdentity(RegistryError, ValueError):
    def __init__(self, identity: Optional[str]):
        self.identity = identity
        super().__init__(f"Invalid (null) identity: {identity!r}")


class AlreadyAuthorized(RegistryError):
    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"'{identity}' is already an authorized writer")


class NotAuthorized(RegistryError):
    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"'{identity}' is not an authorized writer")


class CannotRemoveOwner(RegistryError):
    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"'{identity}' is the owner and cannot be removed from the writer role")


class DuplicateIdentifier(RegistryError):
    def __init__(self, record_id: bytes):
        self.record_id = record_id
        super().__init__(f"Record {_fmt_id(record_id)} already exists")


class NotFound(RegistryError, LookupError):
    def __init__(self, record_id: bytes):
        self.record_id = record_id
        super().__init__(f"Record {_fmt_id(record_id)} not found")


class AlreadyRevoked(RegistryError):
    def __init__(self, record_id: bytes):
        self.record_id = record_id
        super().__init__(f"Record {_fmt_id(record_id)} is already revoked")


class IndexOutOfBounds(RegistryError, IndexError):
    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"Index {index} out of bounds (count={count})")


class EmptyRequiredField(RegistryError, ValueError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Required field '{field}' is empty")
