"""Database models for community challenges and their participants."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import as_utc, dt_iso
from ..fairdraw import build_verification_reference, format_draw_timestamp
from .base import Base
from .id_type import ID_TYPE
from .utils import generate_public_id

if TYPE_CHECKING:
    from .user import User

CHALLENGE_TYPES = ("steps", "meditation", "water", "eating", "workout", "custom")


class Challenge(Base):
    """A time-boxed community challenge that may end in a FairDraw."""

    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    public_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    """Opaque identifier exposed to clients and used as the draw's challenge id."""

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    """One of :data:`CHALLENGE_TYPES`."""

    goal: Mapped[float] = mapped_column(Float, nullable=False)
    """Progress value a participant must reach to become eligible for the draw."""

    goal_unit: Mapped[str] = mapped_column(String(50), nullable=False, default="points")
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)

    creator_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """User who created the challenge and is allowed to trigger its draw."""

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    """End of the scoring window. Its millisecond ISO form is the draw timestamp."""

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    prize: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    winner_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    """Winner selected by FairDraw, ``None`` until the draw runs."""

    draw_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    """Published verification hash of the draw."""

    draw_encoding: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    """Seed encoding the draw was computed with."""

    draw_participants: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    """Sorted participant ``public_id`` values that were hashed.

    Frozen at draw time so the draw still re-derives after users are deleted.
    """

    draw_winner_public_id: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True
    )
    """``public_id`` of the winner as published, kept if the user row goes away."""

    draw_timestamp: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """When the draw was executed (not part of the hash input)."""

    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

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

    creator: Mapped["User"] = relationship(
        "User", back_populates="created_challenges", foreign_keys=[creator_id]
    )
    winner: Mapped[Optional["User"]] = relationship(
        "User", back_populates="challenges_won", foreign_keys=[winner_id]
    )
    participants: Mapped[list["ChallengeParticipant"]] = relationship(
        back_populates="challenge",
        cascade="all, delete-orphan",
        order_by="ChallengeParticipant.id",
    )

    __table_args__ = (
        CheckConstraint("goal > 0", name="goal_positive"),
        CheckConstraint("duration_days > 0", name="duration_positive"),
        Index("ix_challenges_type_is_public", "type", "is_public"),
    )

    def __init__(
        self,
        *,
        title: str,
        description: str,
        type: str,
        goal: float,
        duration_days: int,
        start_date: datetime,
        end_date: datetime,
        creator: Optional["User"] = None,
        creator_id: Optional[int] = None,
        goal_unit: str = "points",
        is_public: bool = True,
        prize: str = "",
        public_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        if type not in CHALLENGE_TYPES:
            raise ValueError(f"Unsupported challenge type '{type}'")
        self.title = title
        self.description = description
        self.type = type
        self.goal = goal
        self.goal_unit = goal_unit
        self.duration_days = duration_days
        self.start_date = start_date
        self.end_date = end_date
        if creator is not None:
            self.creator = creator
        if creator_id is not None:
            self.creator_id = creator_id
        self.is_public = is_public
        self.prize = prize
        self.public_id = public_id or generate_public_id()
        self.is_completed = False
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Challenge(id={id}, public_id={pid}, type={type}, completed={done})>".format(
            id=self.id,
            pid=self.public_id,
            type=self.type,
            done=self.is_completed,
        )

    @classmethod
    def get_by_public_id(cls, session: Session, public_id: str) -> Optional["Challenge"]:
        """Return the challenge matching ``public_id`` if it exists."""

        return session.scalar(select(cls).where(cls.public_id == public_id))

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` once ``now`` is at or past :attr:`end_date`."""
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)
        return current >= as_utc(self.end_date)

    def accepts_joins(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` until ``now`` is strictly past :attr:`end_date`.

        Joining at the exact end instant is still allowed, while the draw
        becomes available at that same instant (see :meth:`has_ended`).
        """
        current = as_utc(now) if now is not None else datetime.now(timezone.utc)
        return current <= as_utc(self.end_date)

    def participant_for(self, user: "User") -> Optional["ChallengeParticipant"]:
        """Return ``user``'s participation record, if they joined."""
        for participant in self.participants:
            if participant.user is user or (
                user.id is not None and participant.user_id == user.id
            ):
                return participant
        return None

    def eligible_participants(self) -> list["ChallengeParticipant"]:
        """Participants whose recorded progress reached the goal."""
        return [p for p in self.participants if p.completed]

    def draw_input_timestamp(self) -> str:
        """Timestamp string fed into FairDraw for this challenge."""
        return format_draw_timestamp(self.end_date)

    def verification_reference(self) -> Optional[str]:
        """Public verification path, or ``None`` before the draw."""
        if self.draw_hash is None:
            return None
        return build_verification_reference(self.public_id, self.draw_hash)

    def to_json(self) -> dict[str, Any]:
        """Serialize the challenge to a JSON-compatible dict."""
        return {
            "id": self.public_id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "goal": self.goal,
            "goal_unit": self.goal_unit,
            "duration": self.duration_days,
            "creator": self.creator.public_id if self.creator is not None else None,
            "participants": [p.to_json() for p in self.participants],
            "start_date": dt_iso(self.start_date),
            "end_date": dt_iso(self.end_date),
            "is_public": self.is_public,
            "prize": self.prize,
            "winner": self.draw_winner_public_id
            or (self.winner.public_id if self.winner is not None else None),
            "draw_hash": self.draw_hash,
            "draw_encoding": self.draw_encoding,
            "draw_participants": self.draw_participants,
            "draw_timestamp": dt_iso(self.draw_timestamp),
            "verification_reference": self.verification_reference(),
            "is_completed": self.is_completed,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }


class ChallengeParticipant(Base):
    """Association between a user and a challenge, with recorded progress."""

    __tablename__ = "challenge_participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    challenge_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Set once ``progress`` reaches the challenge goal; never reset."""

    challenge: Mapped["Challenge"] = relationship(back_populates="participants")
    user: Mapped["User"] = relationship(back_populates="participations")

    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),
    )

    def __init__(
        self,
        *,
        user: Optional["User"] = None,
        user_id: Optional[int] = None,
        challenge: Optional[Challenge] = None,
        challenge_id: Optional[int] = None,
        progress: float = 0,
        joined_at: Optional[datetime] = None,
        completed: bool = False,
    ) -> None:
        if user is not None:
            self.user = user
        if user_id is not None:
            self.user_id = user_id
        if challenge is not None:
            self.challenge = challenge
        if challenge_id is not None:
            self.challenge_id = challenge_id
        self.progress = progress
        self.completed = completed
        if joined_at is not None:
            self.joined_at = joined_at

    def record_progress(self, progress: float, goal: float) -> None:
        """Store ``progress`` and mark completion once ``goal`` is reached."""
        self.progress = progress
        if progress >= goal:
            self.completed = True

    def to_json(self) -> dict[str, Any]:
        return {
            "user": self.user.public_id if self.user is not None else None,
            "progress": self.progress,
            "joined_at": dt_iso(self.joined_at),
            "completed": self.completed,
        }


__all__ = [
    "CHALLENGE_TYPES",
    "Challenge",
    "ChallengeParticipant",
]
