import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .db.utils import as_utc
from .errors import ChallengeNotFoundError, ChallengeStateError, NotAuthorizedError
from .fairdraw import DELIMITED, perform_draw, verify_draw
from .models import Challenge, ChallengeParticipant, User
from .schemas import ChallengeCreate, ChallengeQuery, DrawOutcome, ProgressUpdate

logger = logging.getLogger(__name__)

POINTS_FOR_CREATING = 25
POINTS_FOR_JOINING = 15
POINTS_FOR_WINNING = 100


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def _require_persisted(user: User) -> None:
    if user.id is None:
        raise ValueError("User must be persisted before taking part in a challenge")


def create_challenge(
    session: Session,
    creator: User,
    payload: Union[ChallengeCreate, Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> Challenge:
    """Create a challenge and enrol its creator as the first participant.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    creator : User
        Persisted user creating the challenge. They are the only user allowed
        to trigger the challenge's draw later on.
    payload : ChallengeCreate or Mapping[str, Any]
        Challenge definition. Raw mappings are validated into
        :class:`ChallengeCreate` first.
    now : Optional[datetime], default: None
        Start of the challenge. Defaults to the current UTC time.

    Returns
    -------
    Challenge
        The flushed challenge, ending ``duration`` days after ``now``.

    Raises
    ------
    pydantic.ValidationError
        If ``payload`` is malformed.
    ValueError
        If ``creator`` has not been persisted.
    """

    _require_persisted(creator)
    data = (
        payload
        if isinstance(payload, ChallengeCreate)
        else ChallengeCreate.model_validate(payload)
    )
    start = _now(now)

    challenge = Challenge(
        title=data.title,
        description=data.description,
        type=data.type,
        goal=data.goal,
        goal_unit=data.goal_unit,
        duration_days=data.duration,
        start_date=start,
        end_date=start + timedelta(days=data.duration),
        creator=creator,
        is_public=data.is_public,
        prize=data.prize,
    )
    challenge.participants.append(
        ChallengeParticipant(user=creator, progress=0, joined_at=start)
    )
    session.add(challenge)
    creator.add_points(POINTS_FOR_CREATING)
    session.flush()

    logger.info(f"Challenge {challenge.public_id} created by user {creator.public_id}")
    return challenge


def get_challenge(session: Session, public_id: str) -> Challenge:
    """Return the challenge with ``public_id`` or raise ``ChallengeNotFoundError``."""

    challenge = Challenge.get_by_public_id(session, public_id)
    if challenge is None:
        raise ChallengeNotFoundError("Challenge not found")
    return challenge


def list_public_challenges(
    session: Session,
    query: Union[ChallengeQuery, Mapping[str, Any], None] = None,
    *,
    now: Optional[datetime] = None,
) -> list[Challenge]:
    """Return public challenges, newest first.

    ``status="active"`` keeps challenges that are not completed and have not
    ended yet; ``status="completed"`` keeps completed ones.
    """

    if query is None:
        filters = ChallengeQuery()
    elif isinstance(query, ChallengeQuery):
        filters = query
    else:
        filters = ChallengeQuery.model_validate(query)

    stmt = select(Challenge).where(Challenge.is_public.is_(True))
    if filters.type is not None:
        stmt = stmt.where(Challenge.type == filters.type)
    if filters.status == "active":
        stmt = stmt.where(
            Challenge.end_date >= _now(now),
            Challenge.is_completed.is_(False),
        )
    elif filters.status == "completed":
        stmt = stmt.where(Challenge.is_completed.is_(True))

    stmt = stmt.order_by(Challenge.created_at.desc(), Challenge.id.desc())
    return list(session.scalars(stmt).all())


def list_user_challenges(session: Session, user: User) -> list[Challenge]:
    """Return every challenge ``user`` participates in, newest first."""

    _require_persisted(user)
    stmt = (
        select(Challenge)
        .join(Challenge.participants)
        .where(ChallengeParticipant.user_id == user.id)
        .order_by(Challenge.created_at.desc(), Challenge.id.desc())
    )
    return list(session.scalars(stmt).all())


def join_challenge(
    session: Session,
    challenge: Challenge,
    user: User,
    *,
    now: Optional[datetime] = None,
) -> ChallengeParticipant:
    """Enrol ``user`` in ``challenge`` with zero progress.

    Joins are refused only once ``now`` is strictly after the end date.
    """

    _require_persisted(user)
    if challenge.participant_for(user) is not None:
        raise ChallengeStateError("Already joined this challenge")

    current = _now(now)
    if not challenge.accepts_joins(current):
        raise ChallengeStateError("Challenge has ended")

    participant = ChallengeParticipant(user=user, progress=0, joined_at=current)
    challenge.participants.append(participant)
    user.add_points(POINTS_FOR_JOINING)
    session.flush()

    logger.info(f"User {user.public_id} joined challenge {challenge.public_id}")
    return participant


def update_progress(
    session: Session,
    challenge: Challenge,
    user: User,
    progress: Union[ProgressUpdate, Mapping[str, Any], float],
) -> ChallengeParticipant:
    """Record ``user``'s progress; reaching the goal makes them draw-eligible.

    Progress is frozen once the challenge is completed so that a published
    draw can always be re-derived from the stored eligibility.
    """

    if isinstance(progress, ProgressUpdate):
        data = progress
    elif isinstance(progress, Mapping):
        data = ProgressUpdate.model_validate(progress)
    else:
        data = ProgressUpdate(progress=progress)

    participant = challenge.participant_for(user)
    if participant is None:
        raise ChallengeStateError("Not joined this challenge")
    if challenge.is_completed:
        raise ChallengeStateError("Challenge is already completed")

    participant.record_progress(data.progress, challenge.goal)
    session.flush()
    return participant


def run_fair_draw(
    session: Session,
    challenge: Challenge,
    requester: User,
    *,
    now: Optional[datetime] = None,
    encoding: str = DELIMITED,
) -> DrawOutcome:
    """Select and persist the winner of an ended challenge with FairDraw.

    The draw is performed over the ``public_id`` of every participant whose
    progress reached the goal, with the challenge's ``public_id`` and its
    end date (millisecond ISO-8601, UTC) as the remaining inputs.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    challenge : Challenge
        Persisted challenge to draw.
    requester : User
        User asking for the draw. Must be the challenge creator.
    now : Optional[datetime], default: None
        Current time, used for the "has ended" check and recorded as the draw
        time. Defaults to the current UTC time.
    encoding : str, default: "delimited"
        Seed encoding passed to :func:`~wellquest.fairdraw.perform_draw`.

    Returns
    -------
    DrawOutcome
        The published winner, hash and verification reference.

    Raises
    ------
    NotAuthorizedError
        If ``requester`` is not the challenge creator.
    ChallengeStateError
        If the challenge has not ended, already has a winner (including one
        written concurrently by another request), or has no eligible
        participants.
    """

    if challenge.id is None:
        raise ValueError("Challenge must be persisted before running a draw")
    if challenge.creator_id != requester.id:
        raise NotAuthorizedError("Only challenge creator can trigger FairDraw")

    current = _now(now)
    if not challenge.has_ended(current):
        raise ChallengeStateError("Challenge has not ended yet")
    if challenge.winner_id is not None:
        raise ChallengeStateError("Winner already selected")

    eligible = challenge.eligible_participants()
    if not eligible:
        raise ChallengeStateError("No eligible participants")

    users_by_public_id = {p.user.public_id: p.user for p in eligible}
    drawn_ids = sorted(users_by_public_id)
    timestamp = challenge.draw_input_timestamp()
    result = perform_draw(
        drawn_ids,
        challenge.public_id,
        timestamp,
        encoding=encoding,
    )
    winner = users_by_public_id[result.winner]

    # Claim the challenge with a single conditional UPDATE so that only one of
    # several concurrent requests can record a winner.
    session.flush()
    claimed = session.execute(
        update(Challenge)
        .where(Challenge.id == challenge.id, Challenge.winner_id.is_(None))
        .values(
            winner_id=winner.id,
            draw_hash=result.verification_hash,
            draw_encoding=result.encoding,
            draw_participants=drawn_ids,
            draw_winner_public_id=result.winner,
            draw_timestamp=current,
            is_completed=True,
        )
        .execution_options(synchronize_session=False)
    )
    session.refresh(challenge)
    if claimed.rowcount != 1:
        logger.warning(
            f"Draw for challenge {challenge.public_id} lost a race; winner already recorded"
        )
        raise ChallengeStateError("Winner already selected")

    winner.add_points(POINTS_FOR_WINNING)
    session.flush()

    logger.info(
        f"FairDraw for challenge {challenge.public_id}: winner {winner.public_id} "
        f"out of {len(eligible)} eligible, hash {result.verification_hash}"
    )
    return DrawOutcome(
        challenge_id=challenge.public_id,
        winner=result.winner,
        verification_hash=result.verification_hash,
        eligible_count=len(eligible),
        draw_timestamp=timestamp,
        verification_reference=challenge.verification_reference(),
        encoding=result.encoding,
    )


def verify_challenge_draw(challenge: Challenge) -> bool:
    """Re-derive a persisted draw from the inputs recorded when it ran.

    The participant ids and winner frozen at draw time are used, so deleting
    users afterwards does not invalidate an honest draw. Rows drawn before
    those inputs were recorded fall back to the live eligible participants.
    Returns ``False`` when no draw has been recorded.
    """

    if challenge.draw_hash is None:
        return False

    participants = challenge.draw_participants
    if participants is None:
        participants = [p.user.public_id for p in challenge.eligible_participants()]

    winner = challenge.draw_winner_public_id
    if winner is None:
        if challenge.winner is None:
            return False
        winner = challenge.winner.public_id

    return verify_draw(
        participants,
        challenge.public_id,
        challenge.draw_input_timestamp(),
        winner,
        challenge.draw_hash,
        encoding=challenge.draw_encoding or DELIMITED,
    )


def delete_challenge(session: Session, challenge: Challenge, requester: User) -> None:
    """Delete ``challenge``; only its creator may do so."""

    if challenge.creator_id != requester.id:
        raise NotAuthorizedError("Challenge not found or not authorized")

    public_id = challenge.public_id
    session.delete(challenge)
    session.flush()
    logger.info(f"Challenge {public_id} deleted by user {requester.public_id}")
