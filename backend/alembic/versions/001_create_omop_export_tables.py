"""Create OMOP export run and high-water mark tables.

Adds the person surrogate column to the platform's patients table,
creates omop_export_runs and the omop_export_hwm singleton, and seeds
the singleton at the epoch.

Revision ID: 001
Revises: None
Create Date: 2026-02-16

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

EPOCH = "1970-01-01T00:00:00Z"

HWM_COLUMNS = (
    "patients_hwm",
    "daily_entries_hwm",
    "validated_assessments_hwm",
    "patient_medications_hwm",
    "patient_diagnoses_hwm",
    "appointments_hwm",
    "passive_health_hwm",
    "journal_entries_hwm",
)


def upgrade() -> None:
    # Person surrogate on the platform's patients table
    op.add_column("patients", sa.Column("omop_person_id", sa.Integer(), nullable=True))
    op.create_index("ix_patients_omop_person_id", "patients", ["omop_person_id"], unique=True)

    export_status_enum = postgresql.ENUM(
        "pending",
        "processing",
        "completed",
        "failed",
        name="export_status",
        create_type=False,
    )
    export_status_enum.create(op.get_bind(), checkfirst=True)

    export_trigger_enum = postgresql.ENUM(
        "nightly",
        "manual",
        name="export_trigger",
        create_type=False,
    )
    export_trigger_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "omop_export_runs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("status", export_status_enum, nullable=False, server_default="pending"),
        sa.Column("triggered_by", export_trigger_enum, nullable=False, server_default="manual"),
        sa.Column("output_mode", sa.String(50), nullable=False, server_default="tsv_upload"),
        sa.Column("full_refresh", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("record_counts", sa.JSON(), nullable=True),
        sa.Column("file_urls", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_omop_export_runs_status", "omop_export_runs", ["status"])
    op.create_index("idx_omop_export_runs_created_at", "omop_export_runs", ["created_at"])

    op.create_table(
        "omop_export_hwm",
        sa.Column("id", sa.Integer(), primary_key=True, server_default="1"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        *[
            sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=EPOCH)
            for name in HWM_COLUMNS
        ],
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("id = 1", name="ck_omop_export_hwm_singleton"),
    )
    op.execute("INSERT INTO omop_export_hwm (id) VALUES (1)")


def downgrade() -> None:
    op.drop_table("omop_export_hwm")

    op.drop_index("idx_omop_export_runs_created_at", table_name="omop_export_runs")
    op.drop_index("ix_omop_export_runs_status", table_name="omop_export_runs")
    op.drop_table("omop_export_runs")

    op.execute("DROP TYPE IF EXISTS export_trigger")
    op.execute("DROP TYPE IF EXISTS export_status")

    op.drop_index("ix_patients_omop_person_id", table_name="patients")
    op.drop_column("patients", "omop_person_id")
