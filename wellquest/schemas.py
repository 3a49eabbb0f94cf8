"""Request and response schemas for the challenge workflows.

Inputs are validated strictly: unknown fields and wrongly typed values are
rejected with :class:`pydantic.ValidationError` instead of being coerced.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ChallengeType = Literal["steps", "meditation", "water", "eating", "workout", "custom"]


class ChallengeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    type: ChallengeType
    goal: float = Field(gt=0)
    goal_unit: str = Field(default="points", min_length=1, max_length=50)
    duration: int = Field(ge=1, le=365, description="Length of the challenge in days.")
    is_public: bool = True
    prize: str = Field(default="", max_length=255)


class ProgressUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    progress: float = Field(ge=0)


class ChallengeQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Optional[ChallengeType] = None
    status: Optional[Literal["active", "completed"]] = None


class DrawOutcome(BaseModel):
    """Published result of a challenge draw."""

    challenge_id: str
    winner: str
    verification_hash: str = Field(pattern=r"^[0-9a-f]{64}$")
    eligible_count: int
    draw_timestamp: str
    verification_reference: str
    encoding: str


__all__ = [
    "ChallengeCreate",
    "ChallengeQuery",
    "ChallengeType",
    "DrawOutcome",
    "ProgressUpdate",
]
