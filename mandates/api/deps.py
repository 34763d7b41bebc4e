from typing import Generator, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mandates.core.config import Settings, get_settings
from mandates.core.revocation import RevocationService
from mandates.core.security import decode_token
from mandates.db.models import User
from mandates.db.session import get_session_factory
from mandates.services import (
    DocumentStorage,
    HttpSignatureVerifier,
    LocalDocumentStorage,
    SignatureVerifier,
)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Get current authenticated user from the bearer JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    if not credentials:
        raise credentials_exception
    
    user_id = decode_token(credentials.credentials)
    if not user_id:
        raise credentials_exception
    
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise credentials_exception
    return user


def get_document_storage(settings: Settings = Depends(get_settings)) -> DocumentStorage:
    return LocalDocumentStorage(settings.document_storage_dir, settings.document_base_url)


def get_signature_verifier(settings: Settings = Depends(get_settings)) -> Optional[SignatureVerifier]:
    if not settings.signature_verifier_url:
        return None
    return HttpSignatureVerifier(settings.signature_verifier_url, timeout=settings.signature_verifier_timeout)


def get_revocation_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: DocumentStorage = Depends(get_document_storage),
    verifier: Optional[SignatureVerifier] = Depends(get_signature_verifier),
    settings: Settings = Depends(get_settings),
) -> RevocationService:
    """Revocation service scoped to the current user's business profile."""
    return RevocationService(
        db,
        current_user.business_profile_id,
        storage=storage,
        verifier=verifier,
        settings=settings,
    )
