# examples/registry_demo.py
# Run with: poetry run python examples/registry_demo.py

from registry import CertificateRegistry
from registry.core.clock import ManualClock
from registry.core.errors import Unauthorized
from registry.crypto.hashing import sha256_hex
from registry.logging_config import configure_logging


if __name__ == "__main__":
    configure_logging("INFO")

    clock = ManualClock(start=1_767_225_600)
    registry = CertificateRegistry(owner="0xUniversity", clock=clock)
    registry.events.subscribe(lambda e: print(f"  event → {e}"))

    registry.add_writer("0xUniversity", "0xRegistrarOffice")

    cert_pdf = b"%PDF-1.7 ... diploma bytes ..."
    rid = registry.issue_certificate(
        "0xRegistrarOffice",
        student_name="Ada Lovelace",
        course_name="Analytical Engines 101",
        content_hash=sha256_hex(cert_pdf),
        issue_date="2026-01-01",
    )
    print(f"Issued certificate 0x{rid.hex()}")

    result = registry.verify_by_content_hash(sha256_hex(cert_pdf))
    print(result)

    try:
        registry.revoke("0xSomeoneElse", rid)
    except Unauthorized as e:
        print(f"Rejected as expected: {e}")

    clock.advance()
    registry.revoke("0xRegistrarOffice", rid)
    print(registry.verify_by_id(rid))
