"""helpdesk core schema: services and requests

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


UUID_TYPE = sa.CHAR(36).with_variant(postgresql.UUID(as_uuid=True), "postgresql")
JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    op.create_table(
        "services",
        sa.Column("id", UUID_TYPE, primary_key=True, nullable=False),
        sa.Column("machine_name", sa.String(length=33), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("form", JSON_TYPE, nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("ca_info", JSON_TYPE, nullable=False),
        sa.Column("notifications", JSON_TYPE, nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("machine_name", name="uniq_services_machine_name"),
    )

    op.create_table(
        "requests",
        sa.Column("id", UUID_TYPE, primary_key=True, nullable=False),
        sa.Column("service_name", sa.String(length=33), nullable=False),
        sa.Column("data", JSON_TYPE, nullable=False),
        sa.Column("notifications", JSON_TYPE, nullable=False),
        sa.Column("status", sa.String(length=64), nullable=False),
        sa.Column("ca_info", JSON_TYPE),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    # No foreign key: a Request outlives its Service.
    op.create_index("idx_requests_service_name", "requests", ["service_name"])


def downgrade() -> None:
    op.drop_index("idx_requests_service_name", table_name="requests")
    op.drop_table("requests")
    op.drop_table("services")
