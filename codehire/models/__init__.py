"""
CodeHire – SQLAlchemy ORM models package.

Imports all model classes so Alembic and the app can discover them
through a single ``from codehire.models import *`` import.
"""

from codehire.models.user import User                               # noqa: F401
from codehire.models.skill import Skill                             # noqa: F401
from codehire.models.user_skill import UserSkill                  # noqa: F401
from codehire.models.portfolio_item import PortfolioItem          # noqa: F401
from codehire.models.team import Team                               # noqa: F401
from codehire.models.team_member import TeamMember                  # noqa: F401
from codehire.models.project import Project, ProjectSkill           # noqa: F401
from codehire.models.application import Application                 # noqa: F401
from codehire.models.notification import Notification               # noqa: F401
from codehire.models.outbox import OutboxEvent                      # noqa: F401
from codehire.models.conversation import Conversation, ConversationParticipant  # noqa: F401
from codehire.models.message import Message                         # noqa: F401
