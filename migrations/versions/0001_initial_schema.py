"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("hirer", "coder", name="user_role")
hire_preference = sa.Enum("individual", "team", "either", name="hire_preference")
project_status = sa.Enum(
    "draft", "open", "active", "in_progress", "closed", "completed", "cancelled",
    name="project_status",
)
applicant_kind = sa.Enum("individual", "team", name="applicant_kind")
application_status = sa.Enum("pending", "accepted", "rejected", name="application_status")
team_role = sa.Enum("owner", "member", name="team_role")


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", user_role, nullable=True),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("bio", sa.Text()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "skills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False, unique=True),
        sa.Column("category", sa.String(100)),
    )
    op.create_index("ix_skills_id", "skills", ["id"])

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("logo_url", sa.String(500)),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_teams_id", "teams", ["id"])

    op.create_table(
        "team_members",
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role", team_role),
        _timestamp("joined_at"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("budget", sa.Numeric(12, 2)),
        sa.Column("deadline", sa.Date()),
        sa.Column("hire_preference", hire_preference),
        sa.Column("status", project_status),
        sa.Column("paid", sa.Boolean()),
        sa.Column("bidding_end_time", sa.DateTime(timezone=True)),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_projects_id", "projects", ["id"])
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])
    op.create_index("ix_projects_status", "projects", ["status"])

    op.create_table(
        "project_skills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("skill_id", sa.Integer(), sa.ForeignKey("skills.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("project_id", "skill_id", name="uq_project_skill"),
    )
    op.create_index("ix_project_skills_project_id", "project_skills", ["project_id"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("applicant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("applicant_kind", applicant_kind),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id")),
        sa.Column("bid_amount", sa.Numeric(12, 2)),
        sa.Column("experience_years", sa.Integer()),
        sa.Column("message", sa.Text()),
        sa.Column("status", application_status),
        _timestamp("created_at"),
        sa.Column("decided_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("project_id", "applicant_id", name="uq_application_project_applicant"),
    )
    op.create_index("ix_applications_id", "applications", ["id"])
    op.create_index("ix_applications_project_id", "applications", ["project_id"])
    op.create_index("ix_applications_applicant_id", "applications", ["applicant_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("related_id", sa.Integer()),
        sa.Column("dedupe_key", sa.String(200), unique=True),
        sa.Column("is_read", sa.Boolean()),
        _timestamp("created_at"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("recipient_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_id", sa.Integer()),
        sa.Column("attempts", sa.Integer()),
        sa.Column("last_error", sa.Text()),
        sa.Column("delivered_at", sa.DateTime(timezone=True)),
        _timestamp("created_at"),
        sa.UniqueConstraint("application_id", "kind", name="uq_outbox_application_kind"),
    )
    op.create_index("ix_notification_outbox_id", "notification_outbox", ["id"])
    op.create_index("ix_notification_outbox_delivered_at", "notification_outbox", ["delivered_at"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), primary_key=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_conversations_id", "conversations", ["id"])

    op.create_table(
        "conversation_participants",
        sa.Column(
            "conversation_id", sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        _timestamp("joined_at"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "conversation_id", sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_messages_id", "messages", ["id"])
    op.create_index("ix_messages_conversation_id", "messages", ["conversation_id"])


def downgrade() -> None:
    for table in (
        "messages",
        "conversation_participants",
        "conversations",
        "notification_outbox",
        "notifications",
        "applications",
        "project_skills",
        "projects",
        "team_members",
        "teams",
        "skills",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (application_status, applicant_kind, project_status, hire_preference, team_role, user_role):
        enum.drop(bind, checkfirst=True)
