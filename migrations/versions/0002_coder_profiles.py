"""coder profiles: rate, location, skills, portfolio

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

skill_level = sa.Enum("beginner", "intermediate", "advanced", "expert", name="skill_level")


def upgrade() -> None:
    op.add_column("users", sa.Column("location", sa.String(200)))
    op.add_column("users", sa.Column("hourly_rate", sa.Integer()))

    op.create_table(
        "user_skills",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("skill_id", sa.Integer(), sa.ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("level", skill_level, nullable=True),
    )

    op.create_table(
        "portfolio_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("image_url", sa.String(500)),
        sa.Column("project_url", sa.String(500)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_portfolio_items_id", "portfolio_items", ["id"])
    op.create_index("ix_portfolio_items_owner_id", "portfolio_items", ["owner_id"])


def downgrade() -> None:
    op.drop_table("portfolio_items")
    op.drop_table("user_skills")
    skill_level.drop(op.get_bind(), checkfirst=True)

    with op.batch_alter_table("users") as batch:
        batch.drop_column("hourly_rate")
        batch.drop_column("location")
