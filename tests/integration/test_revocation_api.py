"""End-to-end tests for the decision and revocation endpoints."""

import asyncio
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from mandates.api.routers.revocations import read_upload
from mandates.core.revocation import DocumentRejectedError
from mandates.core.security import create_access_token

pytestmark = pytest.mark.integration

PDF = b"%PDF-1.7 revoking resolution"


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def revocation(client: TestClient, decision, requester, approver_a, approver_b):
    response = client.post(
        "/api/revocations",
        json={
            "decision_id": str(decision.id),
            "reason": "Resolution superseded",
            "required_approvers": [str(approver_a.id), str(approver_b.id)],
        },
        headers=auth_headers(requester),
    )
    assert response.status_code == 201
    return response.json()


def upload(client, request_id, user, filename="uchwala.pdf", content=PDF, content_type="application/pdf"):
    return client.post(
        f"/api/revocations/{request_id}/document",
        files={"file": (filename, content, content_type)},
        headers=auth_headers(user),
    )


@pytest.fixture
def verified(client: TestClient, revocation, requester):
    assert upload(client, revocation["id"], requester).status_code == 200
    response = client.post(f"/api/revocations/{revocation['id']}/verify", headers=auth_headers(requester))
    assert response.status_code == 200
    assert response.json()["status"] == "verified"
    return response.json()


class TestAuthentication:
    
    def test_missing_token(self, client: TestClient):
        assert client.get("/api/revocations").status_code == 401
    
    def test_invalid_token(self, client: TestClient):
        response = client.get("/api/decisions", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
    
    def test_unknown_user(self, client: TestClient, profile):
        response = client.get("/api/decisions", headers={"Authorization": f"Bearer {create_access_token(uuid4())}"})
        assert response.status_code == 401


class TestDecisionEndpoints:
    
    def test_create_and_get(self, client: TestClient, requester):
        response = client.post(
            "/api/decisions",
            json={"title": "Appointment of the management board", "decision_type": "strategic_shareholders"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["created_by"] == str(requester.id)
        
        response = client.get(f"/api/decisions/{data['id']}", headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json()["title"] == "Appointment of the management board"
    
    def test_invalid_validity_window(self, client: TestClient, requester):
        response = client.post(
            "/api/decisions",
            json={
                "title": "Resolution",
                "decision_type": "operational_board",
                "valid_from": "2025-06-01",
                "valid_to": "2025-01-01",
            },
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
    
    def test_list_filtered_by_status(self, client: TestClient, decision, revocation, requester):
        response = client.get("/api/decisions", params={"status": "revoke_requested"}, headers=auth_headers(requester))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(decision.id)
    
    def test_decision_not_found(self, client: TestClient, requester):
        response = client.get(f"/api/decisions/{uuid4()}", headers=auth_headers(requester))
        assert response.status_code == 404
    
    def test_latest_revocation(self, client: TestClient, decision, revocation, requester):
        response = client.get(f"/api/decisions/{decision.id}/revocation", headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json()["id"] == revocation["id"]
    
    def test_no_revocation(self, client: TestClient, decision, requester):
        response = client.get(f"/api/decisions/{decision.id}/revocation", headers=auth_headers(requester))
        assert response.status_code == 404


class TestRevocationEndpoints:
    
    def test_create(self, client: TestClient, revocation, decision, requester, approver_a, approver_b):
        assert revocation["status"] == "pending"
        assert revocation["requested_by"] == str(requester.id)
        assert revocation["required_approvers"] == [str(approver_a.id), str(approver_b.id)]
        assert revocation["approvals"] == []
        
        response = client.get(f"/api/decisions/{decision.id}", headers=auth_headers(requester))
        assert response.json()["status"] == "revoke_requested"
    
    def test_create_with_whitespace_reason(self, client: TestClient, decision, requester, approver_a):
        response = client.post(
            "/api/revocations",
            json={"decision_id": str(decision.id), "reason": "   ", "required_approvers": [str(approver_a.id)]},
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
    
    def test_create_without_approvers(self, client: TestClient, decision, requester):
        response = client.post(
            "/api/revocations",
            json={"decision_id": str(decision.id), "reason": "Reason", "required_approvers": []},
            headers=auth_headers(requester),
        )
        assert response.status_code == 422
    
    def test_create_twice(self, client: TestClient, revocation, decision, requester, approver_a):
        response = client.post(
            "/api/revocations",
            json={"decision_id": str(decision.id), "reason": "Again", "required_approvers": [str(approver_a.id)]},
            headers=auth_headers(requester),
        )
        assert response.status_code == 409
    
    def test_get_unknown(self, client: TestClient, requester):
        response = client.get(f"/api/revocations/{uuid4()}", headers=auth_headers(requester))
        assert response.status_code == 404
    
    def test_upload_document(self, client: TestClient, revocation, requester):
        response = upload(client, revocation["id"], requester)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending_verification"
        assert data["document_name"] == "uchwala.pdf"
        assert data["document_content_type"] == "application/pdf"
        assert data["document_url"].startswith("http://testserver/documents/revocation-")
    
    def test_upload_rejected_type(self, client: TestClient, revocation, requester):
        response = upload(client, revocation["id"], requester, "notes.txt", b"hello", "text/plain")
        assert response.status_code == 400
        assert "not allowed" in response.json()["detail"]
    
    def test_upload_too_large(self, client: TestClient, revocation, requester, settings):
        response = upload(client, revocation["id"], requester, content=b"x" * (settings.max_document_size + 1))
        assert response.status_code == 400
    
    def test_store_client_verification(self, client: TestClient, revocation, requester):
        upload(client, revocation["id"], requester)
        response = client.post(
            f"/api/revocations/{revocation['id']}/verification",
            json={
                "has_signature": True,
                "crypto_valid": False,
                "notes": ["Signature invalid or unknown"],
                "verified_at": "2025-03-01T12:00:00",
            },
            headers=auth_headers(requester),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["signature_verification"]["crypto_valid"] is False
    
    def test_verify_document(self, verified):
        assert verified["signature_verification"]["signer_subject"] == "Jan Kowalski"
    
    def test_verify_without_verifier(self, client: TestClient, revocation, requester):
        from mandates.api.deps import get_signature_verifier
        
        upload(client, revocation["id"], requester)
        client.app.dependency_overrides[get_signature_verifier] = lambda: None
        response = client.post(f"/api/revocations/{revocation['id']}/verify", headers=auth_headers(requester))
        assert response.status_code == 503
    
    def test_approval_flow(self, client: TestClient, verified, decision, requester, approver_a, approver_b):
        url = f"/api/revocations/{verified['id']}/approve"
        
        response = client.post(url, json={"signature": "signed:A"}, headers=auth_headers(approver_a))
        assert response.status_code == 200
        assert response.json()["status"] == "verified"
        assert len(response.json()["approvals"]) == 1
        
        response = client.post(url, json={"signature": "signed:A"}, headers=auth_headers(approver_a))
        assert response.status_code == 409
        
        response = client.post(url, json={"signature": "signed:R"}, headers=auth_headers(requester))
        assert response.status_code == 403
        
        response = client.post(url, json={"signature": "signed:B"}, headers=auth_headers(approver_b))
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "approved"
        assert data["resolved_by"] == str(approver_b.id)
        
        response = client.get(f"/api/decisions/{decision.id}", headers=auth_headers(requester))
        assert response.json()["status"] == "revoked"
        
        response = client.get(f"/api/revocations/{verified['id']}/history", headers=auth_headers(requester))
        assert [h["transition"] for h in response.json()] == [
            "create", "attach_document", "pass_verification", "add_approval", "complete_quorum",
        ]
    
    def test_approve_requires_signature(self, client: TestClient, verified, approver_a):
        response = client.post(
            f"/api/revocations/{verified['id']}/approve",
            json={"signature": ""},
            headers=auth_headers(approver_a),
        )
        assert response.status_code == 422
    
    def test_approve_before_verification(self, client: TestClient, revocation, approver_a):
        response = client.post(
            f"/api/revocations/{revocation['id']}/approve",
            json={"signature": "signed"},
            headers=auth_headers(approver_a),
        )
        assert response.status_code == 409
    
    def test_reject(self, client: TestClient, verified, decision, approver_b):
        response = client.post(
            f"/api/revocations/{verified['id']}/reject",
            json={"notes": "The resolution is still needed"},
            headers=auth_headers(approver_b),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert response.json()["resolution_notes"] == "The resolution is still needed"
        
        response = client.get(f"/api/decisions/{decision.id}", headers=auth_headers(approver_b))
        assert response.json()["status"] == "revoke_rejected"
    
    def test_cancel(self, client: TestClient, verified, decision, requester, approver_a):
        url = f"/api/revocations/{verified['id']}/cancel"
        assert client.post(url, headers=auth_headers(approver_a)).status_code == 403
        
        response = client.post(url, headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        
        assert client.post(url, headers=auth_headers(requester)).status_code == 409
        
        response = client.get(f"/api/decisions/{decision.id}", headers=auth_headers(requester))
        assert response.json()["status"] == "active"
    
    def test_actions(self, client: TestClient, verified, requester, approver_a):
        response = client.get(f"/api/revocations/{verified['id']}/actions", headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json() == {"status": "verified", "actions": ["cancel"]}
        
        response = client.get(f"/api/revocations/{verified['id']}/actions", headers=auth_headers(approver_a))
        assert response.json()["actions"] == ["add_approval", "complete_quorum", "reject"]
    
    def test_list(self, client: TestClient, revocation, requester):
        response = client.get("/api/revocations", params={"status": "pending"}, headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json()["total"] == 1
        
        response = client.get("/api/revocations", params={"status": "approved"}, headers=auth_headers(requester))
        assert response.json()["total"] == 0
    
    def test_other_profile_cannot_see_request(self, client: TestClient, db_session, revocation):
        from tests.factories import create_user
        
        outsider = create_user(db_session)
        db_session.commit()
        response = client.get(f"/api/revocations/{revocation['id']}", headers=auth_headers(outsider))
        assert response.status_code == 404


class TestHealthEndpoints:
    
    def test_basic_health_check(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
    
    def test_readiness(self, client: TestClient):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"


class RecordingUpload:
    """Minimal stand-in for an UploadFile that records read sizes."""
    
    def __init__(self, content: bytes, size=None, filename="uchwala.pdf", content_type="application/pdf"):
        self.content = content
        self.size = size
        self.filename = filename
        self.content_type = content_type
        self.reads = []
    
    async def read(self, size: int = -1) -> bytes:
        self.reads.append(size)
        return self.content if size < 0 else self.content[:size]


class TestReadUpload:
    
    ALLOWED = ["application/pdf", "image/png"]
    
    def test_declared_oversize_refused_unread(self):
        upload_file = RecordingUpload(b"x" * 2048, size=2048)
        with pytest.raises(DocumentRejectedError, match="too large"):
            asyncio.run(read_upload(upload_file, max_size=1024, allowed_types=self.ALLOWED))
        assert upload_file.reads == []
    
    def test_declared_type_refused_unread(self):
        upload_file = RecordingUpload(b"hello", size=5, filename="notes.txt", content_type="text/plain")
        with pytest.raises(DocumentRejectedError, match="not allowed"):
            asyncio.run(read_upload(upload_file, max_size=1024, allowed_types=self.ALLOWED))
        assert upload_file.reads == []
    
    def test_unknown_size_read_is_bounded(self):
        upload_file = RecordingUpload(b"x" * 4096)
        content = asyncio.run(read_upload(upload_file, max_size=1024, allowed_types=self.ALLOWED))
        assert upload_file.reads == [1025]
        assert len(content) == 1025
    
    def test_within_limit(self):
        upload_file = RecordingUpload(PDF, size=len(PDF))
        assert asyncio.run(read_upload(upload_file, max_size=1024, allowed_types=self.ALLOWED)) == PDF


class TestVerificationConcurrency:
    
    def test_slow_verifier_does_not_stall_other_requests(self, client: TestClient, revocation, requester, verifier):
        """Other requests are served while the verifier is awaited."""
        from mandates.api.main import app
        
        assert upload(client, revocation["id"], requester).status_code == 200
        verifier.delay = 0.5
        verify_url = f"/api/revocations/{revocation['id']}/verify"
        finished = []
        
        async def send(http, method, url, **kwargs):
            response = await http.request(method, url, **kwargs)
            finished.append(url)
            return response
        
        async def run():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                verify_task = asyncio.create_task(send(http, "POST", verify_url, headers=auth_headers(requester)))
                while not verifier.calls:
                    await asyncio.sleep(0.01)
                health = await send(http, "GET", "/health")
                return await verify_task, health
        
        verify_response, health_response = asyncio.run(asyncio.wait_for(run(), timeout=10))
        
        assert health_response.status_code == 200
        assert verify_response.status_code == 200
        assert verify_response.json()["status"] == "verified"
        assert finished == ["/health", verify_url]
