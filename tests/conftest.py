# tests/conftest.py
import pytest

from registry.core.clock import ManualClock
from registry.records.ledger import CertificateRegistry, ResearchRegistry

OWNER = "0xOwner"
WRITER = "0xWriter"
OUTSIDER = "0xOutsider"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def research(clock) -> ResearchRegistry:
    return ResearchRegistry(owner=OWNER, clock=clock)


@pytest.fixture
def certificates(clock) -> CertificateRegistry:
    reg = CertificateRegistry(owner=OWNER, clock=clock)
    reg.add_writer(OWNER, WRITER)
    return reg


def register(reg: ResearchRegistry, caller: str = OWNER, **overrides) -> bytes:
    fields = dict(
        title="Coral bleaching time series",
        description="Daily reef temperature + imagery",
        authors=["M. Reef", "K. Tide"],
        content_hash="bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
        metadata_uri="ipfs://bafy-meta",
    )
    fields.update(overrides)
    return reg.register_research(caller, **fields)
