"""Client for the external electronic signature verification service.

The verification service accepts a document upload and answers with the
list of signatures it found::

    {"signatures": [{"status": "VALID", "type": "QUALIFIED",
                     "signatureData": {"firstName": "Jan", "lastName": "Kowalski"},
                     "signingTimestamp": "2025-01-10T12:00:00Z"}]}
"""

import logging
from typing import List, Protocol, runtime_checkable

import httpx

from mandates.core.signature import SignatureInfo

logger = logging.getLogger(__name__)


class SignatureVerifierError(Exception):
    """Raised when the verification service cannot produce a result."""


@runtime_checkable
class SignatureVerifier(Protocol):
    async def verify(self, content: bytes, filename: str, content_type: str) -> List[SignatureInfo]:
        ...


class HttpSignatureVerifier:
    """Posts documents to the verification endpoint over HTTP."""

    def __init__(self, url: str, timeout: int = 30, client: httpx.AsyncClient = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def verify(self, content: bytes, filename: str, content_type: str) -> List[SignatureInfo]:
        files = {"file": (filename, content, content_type)}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, files=files, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, files=files)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Signature verification of %s failed: HTTP %s", filename, e.response.status_code
            )
            raise SignatureVerifierError(
                f"Verification service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Signature verification of %s failed: %s", filename, e)
            raise SignatureVerifierError(f"Verification service unreachable: {e}") from e
        except ValueError as e:
            raise SignatureVerifierError("Verification service returned invalid JSON") from e

        signatures = payload.get("signatures") if isinstance(payload, dict) else None
        if not isinstance(signatures, list):
            raise SignatureVerifierError("Verification response has no signature list")

        result = [SignatureInfo.from_payload(s) for s in signatures if isinstance(s, dict)]
        logger.info(
            "Verified %s: %d signature(s), %d valid",
            filename, len(result), sum(1 for s in result if s.is_valid),
        )
        return result
