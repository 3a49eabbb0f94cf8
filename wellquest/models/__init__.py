from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .challenge import CHALLENGE_TYPES, Challenge, ChallengeParticipant  # noqa: F401

__all__ = [
    "Base",
    "CHALLENGE_TYPES",
    "Challenge",
    "ChallengeParticipant",
    "User",
]
