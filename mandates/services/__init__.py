"""External collaborators of the decision register."""

from mandates.services.document_storage import (
    DocumentStorage,
    LocalDocumentStorage,
    validate_document,
)
from mandates.services.signature_verifier import (
    HttpSignatureVerifier,
    SignatureVerifier,
    SignatureVerifierError,
)

__all__ = [
    "DocumentStorage",
    "LocalDocumentStorage",
    "validate_document",
    "HttpSignatureVerifier",
    "SignatureVerifier",
    "SignatureVerifierError",
]
