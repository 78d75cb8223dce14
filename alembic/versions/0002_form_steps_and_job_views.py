"""Form step tracking and job views

Revision ID: 0002_form_steps_and_job_views
Revises: 0001_initial_schema
Create Date: 2026-10-05

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_form_steps_and_job_views"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def _has_table(insp: sa.Inspector, table: str) -> bool:
    return table in insp.get_table_names()


def _has_column(insp: sa.Inspector, table: str, column: str) -> bool:
    if not _has_table(insp, table):
        return False
    cols = {c["name"] for c in insp.get_columns(table)}
    return column in cols


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    with op.batch_alter_table("application_form_analytics", schema=None) as batch_op:
        if not _has_column(insp, "application_form_analytics", "step_reached"):
            batch_op.add_column(sa.Column("step_reached", sa.Integer(), nullable=False, server_default="1"))
        if not _has_column(insp, "application_form_analytics", "total_steps"):
            batch_op.add_column(sa.Column("total_steps", sa.Integer(), nullable=False, server_default="3"))

    if not _has_table(insp, "job_views"):
        op.create_table(
            "job_views",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
            sa.Column(
                "company_id",
                sa.Integer(),
                sa.ForeignKey("companies.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("ip_address", sa.String(length=64), nullable=True),
            sa.Column("user_agent", sa.Text(), nullable=True),
            sa.Column("referrer", sa.String(length=800), nullable=True),
            sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_job_views_job_id", "job_views", ["job_id"])
        op.create_index("ix_job_views_company_id", "job_views", ["company_id"])


def downgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if _has_table(insp, "job_views"):
        op.drop_index("ix_job_views_company_id", table_name="job_views")
        op.drop_index("ix_job_views_job_id", table_name="job_views")
        op.drop_table("job_views")

    with op.batch_alter_table("application_form_analytics", schema=None) as batch_op:
        if _has_column(insp, "application_form_analytics", "total_steps"):
            batch_op.drop_column("total_steps")
        if _has_column(insp, "application_form_analytics", "step_reached"):
            batch_op.drop_column("step_reached")
