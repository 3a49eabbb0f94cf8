"""Deterministic, publicly verifiable winner selection for challenges."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import hashlib
import hmac
import logging
from typing import Optional, Sequence
from urllib.parse import quote

from .encoding import DEFAULT_ENCODING_REGISTRY, DELIMITED, EncodingRegistry

logger = logging.getLogger(__name__)

# Number of leading hex digits interpreted as the selection number (32 bits).
INDEX_HEX_DIGITS = 8


class InvalidInputError(ValueError):
    """Raised when a draw is requested with unusable input."""


@dataclass(frozen=True)
class DrawResult:
    """Outcome of a single draw.

    Attributes
    ----------
    winner : str
        Identifier of the selected participant.
    verification_hash : str
        Lowercase hex SHA-256 digest of the hash input. Publishing it lets
        anyone holding the same inputs re-derive the result.
    winner_index : int
        Position of ``winner`` in the sorted participant list.
    participant_count : int
        Number of identifiers the draw was performed over.
    encoding : str
        Key of the :class:`~wellquest.fairdraw.encoding.SeedEncoding` used.
    """

    winner: str
    verification_hash: str
    winner_index: int
    participant_count: int
    encoding: str = DELIMITED


def generate_hash(data: str) -> str:
    """Return the SHA-256 hex digest of ``data`` encoded as UTF-8."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def format_draw_timestamp(dt: datetime) -> str:
    """Render ``dt`` as a millisecond-precision UTC ISO-8601 string.

    The output looks like ``2024-06-01T00:00:00.000Z``. Naive datetimes are
    assumed to already be in UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def _hash_input(
    participants: Sequence[str],
    challenge_id: str,
    timestamp: str,
    encoding: str,
    registry: EncodingRegistry,
) -> tuple[list[str], str]:
    """Return the sorted participants and the string to hash."""
    try:
        seed_encoding = registry.get(encoding)
    except KeyError as exc:
        raise InvalidInputError(f"Unknown seed encoding '{encoding}'") from exc

    if len(participants) == 1 and encoding == DELIMITED:
        # Single-entrant draws historically hash the plain concatenation.
        only = participants[0]
        return [only], f"{only}{challenge_id}{timestamp}"

    # ``sorted`` on str compares code points, independent of locale.
    ordered = sorted(participants)
    return ordered, seed_encoding.encode(ordered, challenge_id, timestamp)


def perform_draw(
    participants: Optional[Sequence[str]],
    challenge_id: str,
    timestamp: str,
    *,
    encoding: str = DELIMITED,
    registry: Optional[EncodingRegistry] = None,
) -> DrawResult:
    """Select exactly one winner from ``participants``.

    Parameters
    ----------
    participants : Sequence[str]
        Eligible participant identifiers. Order does not matter; duplicates
        are not removed and weight the draw towards that identifier.
    challenge_id : str
        Identifier of the challenge, used only as hash input.
    timestamp : str
        Draw timestamp, used only as hash input.
    encoding : str, default: "delimited"
        Key of the hash-input encoding.
    registry : Optional[EncodingRegistry], default: None
        Registry to resolve ``encoding`` against. The default registry is
        used when omitted.

    Returns
    -------
    DrawResult
        Winner and verification hash.

    Notes
    -----
    1. Sort the identifiers by code point.
    2. Build the hash input with the selected encoding and SHA-256 it.
    3. Interpret the first 8 hex digits as an unsigned 32-bit integer.
    4. The winner is ``sorted_participants[number % len(participants)]``.

    Raises
    ------
    InvalidInputError
        If ``participants`` is ``None`` or empty, or ``encoding`` is unknown.
    """
    if not participants:
        raise InvalidInputError("No participants provided")

    active_registry = registry or DEFAULT_ENCODING_REGISTRY
    ordered, hash_input = _hash_input(
        list(participants), challenge_id, timestamp, encoding, active_registry
    )
    digest = generate_hash(hash_input)

    if len(ordered) == 1:
        winner_index = 0
    else:
        hash_number = int(digest[:INDEX_HEX_DIGITS], 16)
        winner_index = hash_number % len(ordered)

    logger.debug(
        f"Draw for challenge {challenge_id}: {len(ordered)} participants, "
        f"index {winner_index}, encoding {encoding}"
    )
    return DrawResult(
        winner=ordered[winner_index],
        verification_hash=digest,
        winner_index=winner_index,
        participant_count=len(ordered),
        encoding=encoding,
    )


def verify_draw(
    participants: Optional[Sequence[str]],
    challenge_id: str,
    timestamp: str,
    claimed_winner: str,
    claimed_hash: str,
    *,
    encoding: str = DELIMITED,
    registry: Optional[EncodingRegistry] = None,
) -> bool:
    """Re-derive a draw and check it against a published outcome.

    Returns ``True`` only when both the recomputed hash equals
    ``claimed_hash`` and the recomputed winner equals ``claimed_winner``.
    An empty participant list cannot have produced a draw, so it verifies
    as ``False``.
    """
    if not participants:
        return False

    expected = perform_draw(
        participants, challenge_id, timestamp, encoding=encoding, registry=registry
    )
    hash_matches = hmac.compare_digest(
        expected.verification_hash.encode("ascii"),
        str(claimed_hash).encode("utf-8"),
    )
    return hash_matches and expected.winner == claimed_winner


def build_verification_reference(challenge_id: str, verification_hash: str) -> str:
    """Return the public verification path for a draw."""
    return f"/verify/{quote(str(challenge_id), safe='')}?hash={verification_hash}"


__all__ = [
    "DrawResult",
    "INDEX_HEX_DIGITS",
    "InvalidInputError",
    "build_verification_reference",
    "format_draw_timestamp",
    "generate_hash",
    "perform_draw",
    "verify_draw",
]
