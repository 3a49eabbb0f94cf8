from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE
from .utils import generate_public_id

if TYPE_CHECKING:
    from .challenge import Challenge, ChallengeParticipant


class User(Base):
    """A user taking part in wellness challenges."""

    def __init__(
        self,
        email: str,
        name: Optional[str] = None,
        public_id: Optional[str] = None,
        points: int = 0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`User` record.

        Parameters
        ----------
        email : str
            Login email address. Stored trimmed and lower-cased.
        name : str, optional
            Display name.
        public_id : str, optional
            Opaque identifier used as the FairDraw participant id. Generated
            when omitted.
        points : int, default: 0
            Starting gamification points.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.email = email
        self.name = name
        self.public_id = public_id or generate_public_id()
        self.points = points
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # relationships
    created_challenges: Mapped[list["Challenge"]] = relationship(
        "Challenge",
        back_populates="creator",
        foreign_keys="Challenge.creator_id",
    )
    participations: Mapped[list["ChallengeParticipant"]] = relationship(
        back_populates="user", cascade="all"
    )
    challenges_won: Mapped[list["Challenge"]] = relationship(
        "Challenge",
        back_populates="winner",
        foreign_keys="Challenge.winner_id",
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, public_id='{self.public_id}', "
            f"email='{self.email}', points={self.points})>"
        )

    @validates("email")
    def _normalize_email(self, _key: str, value: str) -> str:
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("email must not be empty")
        return normalized

    def add_points(self, amount: int) -> int:
        """Credit ``amount`` points and return the new balance."""
        self.points = (self.points or 0) + amount
        return self.points

    @classmethod
    def get_by_public_id(cls, session: Session, public_id: str) -> Optional["User"]:
        """Retrieve a user by their public identifier."""

        return session.scalar(select(cls).where(cls.public_id == public_id))

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["User"]:
        """Retrieve a user by email address (case-insensitive)."""

        return session.scalar(select(cls).where(cls.email == email.strip().lower()))
