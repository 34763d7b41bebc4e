"""Tests for signature verification snapshots."""

from datetime import datetime

from mandates.core.signature import (
    SignatureInfo,
    SignatureVerification,
    failed_verification,
    summarize_signatures,
)


class TestSignatureInfo:
    
    def test_from_payload(self):
        info = SignatureInfo.from_payload({
            "status": "valid",
            "type": "QUALIFIED",
            "signatureData": {"firstName": "Anna", "lastName": "Nowak"},
            "signingTimestamp": "2025-02-01T09:30:00Z",
        })
        assert info.is_valid
        assert info.signature_type == "QUALIFIED"
        assert info.signer_name == "Anna Nowak"
        assert info.signing_time == "2025-02-01T09:30:00Z"
    
    def test_from_payload_without_signer(self):
        info = SignatureInfo.from_payload({"status": "INDETERMINATE"})
        assert not info.is_valid
        assert info.signer_name is None


class TestSummarizeSignatures:
    
    def test_no_signatures(self):
        result = summarize_signatures([])
        assert not result.has_signature
        assert not result.crypto_valid
        assert not result.is_valid
        assert result.notes == ["No electronic signature found"]
    
    def test_any_valid_signature_wins(self):
        signatures = [
            SignatureInfo(status="INVALID", first_name="Jan", last_name="Kowalski", signing_time="t1"),
            SignatureInfo(status="VALID", signature_type="TRUSTED", first_name="Anna", last_name="Nowak"),
        ]
        result = summarize_signatures(signatures, verified_at=datetime(2025, 3, 1, 12, 0))
        
        assert result.is_valid
        # Signer data always comes from the first signature
        assert result.signer_subject == "Jan Kowalski"
        assert result.signing_time == "t1"
        assert result.notes == ["Signature invalid or unknown", "Signature verified: TRUSTED"]
        assert result.verified_at == "2025-03-01T12:00:00"
    
    def test_only_invalid_signatures(self):
        result = summarize_signatures([SignatureInfo(status="INVALID")])
        assert not result.is_valid
        assert result.notes == ["Signature invalid or unknown"]


class TestSignatureVerification:
    
    def test_dict_round_trip(self):
        snapshot = SignatureVerification(
            has_signature=True,
            crypto_valid=True,
            signer_subject="Jan Kowalski",
            notes=["Signature verified: QUALIFIED"],
        )
        restored = SignatureVerification.from_dict(snapshot.to_dict())
        assert restored == snapshot
    
    def test_from_empty_dict(self):
        assert SignatureVerification.from_dict(None) is None
        assert SignatureVerification.from_dict({}) is None
    
    def test_crypto_valid_without_signature_is_not_valid(self):
        assert not SignatureVerification(has_signature=False, crypto_valid=True).is_valid
    
    def test_failed_verification(self):
        result = failed_verification()
        assert not result.is_valid
        assert result.notes == ["Verification failed"]
