"""Add decision revocation workflow tables

Revision ID: 0002
Revises: 0001
Create Date: 2025-11-17

Tables added:
- revocation_requests: Revocation attempts with approvers, document and approvals
- revocation_history: State transition audit trail
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create revocation tables."""

    # --- revocation_requests ---
    op.create_table(
        "revocation_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("decision_id", sa.Uuid(), nullable=False),
        sa.Column("business_profile_id", sa.Uuid(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("requested_by", sa.Uuid(), nullable=True),
        sa.Column("requested_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("required_approvers", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("document_name", sa.String(255), nullable=True),
        sa.Column("document_content_type", sa.String(100), nullable=True),
        sa.Column("document_uploaded_at", sa.DateTime(), nullable=True),
        sa.Column("signature_verification", sa.JSON(), nullable=True),
        sa.Column("approvals", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_by", sa.Uuid(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_revocation_requests"),
        sa.ForeignKeyConstraint(
            ["decision_id"], ["decisions.id"],
            name="fk_revocation_requests_decision_id_decisions",
        ),
        sa.ForeignKeyConstraint(
            ["business_profile_id"], ["business_profiles.id"],
            name="fk_revocation_requests_business_profile_id_business_profiles",
        ),
        sa.ForeignKeyConstraint(
            ["requested_by"], ["users.id"],
            name="fk_revocation_requests_requested_by_users", ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["resolved_by"], ["users.id"],
            name="fk_revocation_requests_resolved_by_users", ondelete="SET NULL",
        ),
    )
    op.create_index("ix_revocation_requests_decision_id", "revocation_requests", ["decision_id"])
    op.create_index("ix_revocation_requests_business_profile_id", "revocation_requests", ["business_profile_id"])
    op.create_index("ix_revocation_requests_status", "revocation_requests", ["status"])
    op.create_index("ix_revocation_requests_created_at", "revocation_requests", ["created_at"])

    # --- revocation_history ---
    op.create_table(
        "revocation_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("from_state", sa.String(50), nullable=True),
        sa.Column("to_state", sa.String(50), nullable=False),
        sa.Column("transition", sa.String(50), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("extra_data", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_revocation_history"),
        sa.ForeignKeyConstraint(
            ["request_id"], ["revocation_requests.id"],
            name="fk_revocation_history_request_id_revocation_requests", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_revocation_history_user_id_users", ondelete="SET NULL",
        ),
        sa.UniqueConstraint("request_id", "sequence", name="uq_revocation_history_request_id_sequence"),
    )
    op.create_index("ix_revocation_history_request_id", "revocation_history", ["request_id"])
    op.create_index("ix_revocation_history_created_at", "revocation_history", ["created_at"])


def downgrade() -> None:
    """Drop revocation tables."""
    op.drop_table("revocation_history")
    op.drop_table("revocation_requests")
