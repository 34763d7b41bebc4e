"""Translation of revocation workflow errors into HTTP responses."""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from mandates.core.revocation.errors import (
    RevocationError,
    InvalidTransitionError,
    ActorNotPermittedError,
    DuplicateApprovalError,
    UnverifiedSignatureError,
    NotFoundError,
    DecisionNotRevocableError,
    InvalidRevocationInputError,
)

logger = logging.getLogger(__name__)

# Most specific classes first
ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ActorNotPermittedError, status.HTTP_403_FORBIDDEN),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (DuplicateApprovalError, status.HTTP_409_CONFLICT),
    (UnverifiedSignatureError, status.HTTP_409_CONFLICT),
    (DecisionNotRevocableError, status.HTTP_409_CONFLICT),
    (InvalidRevocationInputError, status.HTTP_400_BAD_REQUEST),
]


def status_for(error: RevocationError) -> int:
    for error_class, status_code in ERROR_STATUS:
        if isinstance(error, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def to_http_exception(db: Session, error: RevocationError) -> HTTPException:
    """Roll back the session and build the HTTP error for a workflow error."""
    db.rollback()
    status_code = status_for(error)
    logger.info("Request failed with %s (%d): %s", type(error).__name__, status_code, error)
    return HTTPException(status_code=status_code, detail=str(error))
