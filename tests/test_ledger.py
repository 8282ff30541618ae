# tests/test_ledger.py
import threading

import pytest

from registry.core.errors import (
    AlreadyRevoked, DuplicateIdentifier, EmptyRequiredField, IndexOutOfBounds,
    NotFound, Unauthorized, CannotRemoveOwner,
)
from registry.core.events import (
    RecordIssued, RecordRevoked, WriterAdded, WriterRemoved, OwnershipTransferred,
)
from registry.core.clock import CounterClock
from registry.core.types import ResearchPayload
from registry.records.ledger import ResearchRegistry
from tests.conftest import OWNER, WRITER, OUTSIDER, register


def test_issue_then_verify_matches_input(research, clock):
    rid = register(research)
    is_valid, record = research.verify_by_id(rid)
    assert is_valid is True
    assert record.id == rid
    assert record.submitter == OWNER
    assert record.created_at == clock.now()
    assert record.payload.title == "Coral bleaching time series"
    assert record.payload.authors == ("M. Reef", "K. Tide")
    assert record.payload.metadata_uri == "ipfs://bafy-meta"


def test_single_author_string_round_trips(research):
    rid = register(research, authors="Jane Doe")
    assert research.verify_by_id(rid).record.payload.authors == ("Jane Doe",)


def test_certificate_issue(certificates):
    rid = certificates.issue_certificate(
        WRITER, student_name="Ada", course_name="Math", content_hash="h1", issue_date="2026-06-01",
    )
    record = certificates.get_record(rid)
    assert record.kind == "certificate"
    assert record.payload.issue_date == "2026-06-01"
    assert certificates.get_record(record.id_hex) == record


@pytest.mark.parametrize("overrides", [
    {"content_hash": ""},
    {"title": ""},
    {"authors": []},
])
def test_empty_required_field_leaves_state(research, overrides):
    register(research, title="keep me")
    with pytest.raises(EmptyRequiredField):
        register(research, **overrides)
    assert research.count_records() == 1


def test_empty_student_name(certificates):
    with pytest.raises(EmptyRequiredField, match="student_name"):
        certificates.issue_certificate(WRITER, student_name="", course_name="C", content_hash="h")
    assert certificates.count_records() == 0


def test_non_writer_cannot_issue(research):
    with pytest.raises(Unauthorized):
        register(research, caller=OUTSIDER)
    assert research.count_records() == 0


def test_same_time_same_content_collides(research):
    register(research)
    with pytest.raises(DuplicateIdentifier):
        register(research)
    assert research.count_records() == 1


def test_distinct_times_give_distinct_ids(research, clock):
    first = register(research)
    clock.advance()
    second = register(research)
    assert first != second
    assert research.verify_by_id(first).is_valid
    assert research.verify_by_id(second).is_valid


def test_counter_clock_avoids_collisions():
    reg = ResearchRegistry(owner=OWNER, clock=CounterClock())
    a = register(reg)
    b = register(reg)
    assert a != b


def test_revoke_once(research):
    rid = register(research)
    research.revoke(OWNER, rid)
    assert research.is_revoked(rid)
    with pytest.raises(AlreadyRevoked):
        research.revoke(OWNER, rid)
    assert research.verify_by_id(rid).is_valid is False


def test_revoke_unknown(research):
    with pytest.raises(NotFound):
        research.revoke(OWNER, b"\x00" * 32)


def test_revoke_scenario(certificates, clock):
    certificates.add_writer(OWNER, "0xOtherWriter")
    rid = certificates.issue_certificate(WRITER, student_name="S", course_name="C", content_hash="h")
    with pytest.raises(Unauthorized):
        certificates.revoke(OUTSIDER, rid)
    with pytest.raises(Unauthorized):
        certificates.revoke("0xOtherWriter", rid)
    certificates.revoke(WRITER, rid)
    assert certificates.is_revoked(rid)

    clock.advance()
    rid2 = certificates.issue_certificate(WRITER, student_name="S", course_name="C", content_hash="h")
    certificates.revoke(OWNER, rid2)
    assert certificates.is_revoked(rid2)


def test_removed_writer_can_still_revoke_own(certificates):
    rid = certificates.issue_certificate(WRITER, student_name="S", course_name="C", content_hash="h")
    certificates.remove_writer(OWNER, WRITER)
    with pytest.raises(Unauthorized):
        certificates.issue_certificate(WRITER, student_name="S2", course_name="C", content_hash="h2")
    certificates.revoke(WRITER, rid)
    assert certificates.is_revoked(rid)


def test_non_owner_admin_leaves_state(certificates):
    with pytest.raises(Unauthorized):
        certificates.add_writer(WRITER, OUTSIDER)
    with pytest.raises(Unauthorized):
        certificates.remove_writer(WRITER, WRITER)
    with pytest.raises(Unauthorized):
        certificates.transfer_ownership(WRITER, WRITER)
    assert certificates.owner == OWNER
    assert not certificates.is_writer(OUTSIDER)
    assert certificates.is_writer(WRITER)


def test_remove_owner_always_fails(research):
    with pytest.raises(CannotRemoveOwner):
        research.remove_writer(OWNER, OWNER)


def test_transfer_ownership(research):
    research.transfer_ownership(OWNER, "0xNewOwner")
    assert research.owner == "0xNewOwner"
    assert research.is_writer("0xNewOwner")
    with pytest.raises(Unauthorized):
        research.add_writer(OWNER, WRITER)


def test_enumeration_matches_issuance(research, clock):
    research.add_writer(OWNER, WRITER)
    issued = []
    for i in range(5):
        clock.advance()
        caller = OWNER if i % 2 else WRITER
        issued.append(register(research, caller=caller, title=f"run {i}"))

    count = research.count_records()
    assert count == 5
    assert [research.record_id_at(i) for i in range(count)] == issued
    with pytest.raises(IndexOutOfBounds):
        research.record_id_at(count)
    with pytest.raises(IndexOutOfBounds):
        research.record_id_at(-1)


def test_records_by_submitter(research, clock):
    research.add_writer(OWNER, WRITER)
    mine = []
    for i in range(4):
        clock.advance()
        caller = WRITER if i != 1 else OWNER
        rid = register(research, caller=caller, title=f"t{i}")
        if caller == WRITER:
            mine.append(rid)

    by_writer = research.records_by_submitter(WRITER)
    assert by_writer == mine
    all_ids = {research.record_id_at(i) for i in range(research.count_records())}
    assert set(by_writer) <= all_ids
    assert research.records_by_submitter(OUTSIDER) == []


def test_records_by_submitter_is_a_copy(research, clock):
    first = register(research)
    snapshot = research.records_by_submitter(OWNER)
    clock.advance()
    register(research)
    assert snapshot == [first]
    snapshot.append(b"x" * 32)
    assert len(research.records_by_submitter(OWNER)) == 2


def test_revocation_does_not_touch_index(research, clock):
    a = register(research)
    clock.advance()
    b = register(research)
    research.revoke(OWNER, a)
    assert [r.id for r in research.iter_records()] == [a, b]


def test_wrong_payload_variant(research):
    from registry.core.types import CertificatePayload
    with pytest.raises(TypeError):
        research.issue(OWNER, "h", CertificatePayload(student_name="S", course_name="C"))


def test_events_emitted_in_order(research):
    seen = []
    research.events.subscribe(seen.append)

    research.add_writer(OWNER, WRITER)
    rid = register(research, caller=WRITER)
    research.revoke(WRITER, rid)
    research.remove_writer(OWNER, WRITER)
    research.transfer_ownership(OWNER, "0xNext")

    assert seen == [
        WriterAdded(identity=WRITER, added_by=OWNER),
        RecordIssued(record_id=rid, display="Coral bleaching time series", submitter=WRITER, kind="research"),
        RecordRevoked(record_id=rid, revoker=WRITER),
        WriterRemoved(identity=WRITER, removed_by=OWNER),
        OwnershipTransferred(previous_owner=OWNER, new_owner="0xNext"),
    ]


def test_no_event_on_rejection(research):
    seen = []
    research.events.subscribe(seen.append)
    with pytest.raises(Unauthorized):
        register(research, caller=OUTSIDER)
    assert seen == []


def test_failing_listener_does_not_break_issue(research, caplog):
    seen = []

    def boom(event):
        raise RuntimeError("listener down")

    research.events.subscribe(boom)
    unsubscribe = research.events.subscribe(seen.append)
    rid = register(research)
    assert research.count_records() == 1
    assert seen[0].record_id == rid
    assert "listener" in caplog.text.lower()

    unsubscribe()
    register(research, title="other")
    assert len(seen) == 1


def test_export_jsonl(research, clock, tmp_path):
    import json
    register(research)
    clock.advance()
    register(research, title="second")
    out = tmp_path / "records.jsonl"
    assert research.export_jsonl(out) == 2
    lines = out.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["payload"]["title"] for line in lines] == [
        "Coral bleaching time series", "second",
    ]


def test_concurrent_issuance_is_serialized():
    reg = ResearchRegistry(owner=OWNER, clock=CounterClock())
    errors = []

    def worker(n):
        try:
            for i in range(20):
                register(reg, title=f"w{n}-{i}")
                reg.verify_by_content_hash("nope")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert reg.count_records() == 80
    assert len(set(reg.records_by_submitter(OWNER))) == 80
