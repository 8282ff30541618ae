# registry/__init__.py
"""
Registry — content-addressed attestation ledger for research records and academic certificates.
Role-gated issuance, one-way revocation and an append-only, insertion-ordered record index.

Stores fingerprints and URIs only; the artifacts themselves live elsewhere.
"""

from registry.core.schema import RESEARCH, CERTIFICATE, RecordSchema
from registry.core.types import Record, ResearchPayload, CertificatePayload
from registry.records.ledger import AttestationLedger, ResearchRegistry, CertificateRegistry
from registry.verify.verifier import VerificationResult

__version__ = "0.1.0-dev"

__all__ = [
    "AttestationLedger",
    "ResearchRegistry",
    "CertificateRegistry",
    "RecordSchema",
    "RESEARCH",
    "CERTIFICATE",
    "Record",
    "ResearchPayload",
    "CertificatePayload",
    "VerificationResult",
]
