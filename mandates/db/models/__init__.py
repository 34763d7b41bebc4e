"""Database models for the decision register."""

from mandates.db.models.business_profile import BusinessProfile
from mandates.db.models.user import User
from mandates.db.models.decision import Decision, DecisionStatus, DecisionType
from mandates.db.models.revocation import RevocationRequest, RevocationHistory

__all__ = [
    "BusinessProfile",
    "User",
    "Decision",
    "DecisionStatus",
    "DecisionType",
    "RevocationRequest",
    "RevocationHistory",
]
