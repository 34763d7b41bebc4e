"""Electronic signature verification results.

The verifier reports every signature embedded in a document. The workflow
keeps only a reduced snapshot: whether any signature is valid, who signed
first and when, and one note per signature.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


VALID_STATUS = "VALID"


@dataclass
class SignatureInfo:
    """One signature as reported by the verifier."""
    status: str                                  # VALID, INVALID, INDETERMINATE
    signature_type: Optional[str] = None         # TRUSTED, QUALIFIED, ADVANCED
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    signing_time: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status == VALID_STATUS

    @property
    def signer_name(self) -> Optional[str]:
        if self.first_name is None and self.last_name is None:
            return None
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SignatureInfo":
        """Build from the verifier's JSON representation of a signature."""
        signer = payload.get("signatureData") or {}
        return cls(
            status=str(payload.get("status", "UNKNOWN")).upper(),
            signature_type=payload.get("type"),
            first_name=signer.get("firstName"),
            last_name=signer.get("lastName"),
            signing_time=payload.get("signingTimestamp"),
        )


@dataclass
class SignatureVerification:
    """Snapshot stored on a revocation request."""
    has_signature: bool
    crypto_valid: bool
    signer_subject: Optional[str] = None
    signing_time: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    verified_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    @property
    def is_valid(self) -> bool:
        return self.has_signature and self.crypto_valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_signature": self.has_signature,
            "crypto_valid": self.crypto_valid,
            "signer_subject": self.signer_subject,
            "signing_time": self.signing_time,
            "notes": list(self.notes),
            "verified_at": self.verified_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SignatureVerification"]:
        if not data:
            return None
        return cls(
            has_signature=bool(data.get("has_signature")),
            crypto_valid=bool(data.get("crypto_valid")),
            signer_subject=data.get("signer_subject"),
            signing_time=data.get("signing_time"),
            notes=list(data.get("notes") or []),
            verified_at=data.get("verified_at") or datetime.utcnow().isoformat(),
        )


def summarize_signatures(
    signatures: List[SignatureInfo],
    verified_at: Optional[datetime] = None,
) -> SignatureVerification:
    """Reduce the verifier's signature list to a stored snapshot.

    Only the first signature's signer and signing time are kept; validity is
    "any signature is VALID".
    """
    any_valid = any(s.is_valid for s in signatures)
    first = signatures[0] if signatures else None
    notes = [
        f"Signature verified: {s.signature_type or 'unknown type'}" if s.is_valid
        else "Signature invalid or unknown"
        for s in signatures
    ]
    if not signatures:
        notes.append("No electronic signature found")

    return SignatureVerification(
        has_signature=len(signatures) > 0 and any_valid,
        crypto_valid=any_valid,
        signer_subject=first.signer_name if first else None,
        signing_time=first.signing_time if first else None,
        notes=notes,
        verified_at=(verified_at or datetime.utcnow()).isoformat(),
    )


def failed_verification(reason: str = "Verification failed") -> SignatureVerification:
    """Snapshot recorded when the verifier could not be reached or errored."""
    return SignatureVerification(
        has_signature=False,
        crypto_valid=False,
        notes=[reason],
    )
