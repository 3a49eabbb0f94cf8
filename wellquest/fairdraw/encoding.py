"""Hash-input encodings used by the FairDraw engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence


@dataclass(frozen=True)
class SeedEncoding:
    """Definition of a hash-input encoding.

    Attributes
    ----------
    key : str
        Registry key used to identify the encoding. This is the value
        persisted alongside a draw so that it can be re-derived later.
    encoder : Callable[[Sequence[str], str, str], str]
        Callable that takes the *sorted* participant identifiers, the
        challenge identifier and the draw timestamp, and returns the string
        that is hashed.
    description : Optional[str]
        Human-readable summary of the framing.
    """

    key: str
    encoder: Callable[[Sequence[str], str, str], str]
    description: Optional[str] = None

    def encode(
        self, sorted_participants: Sequence[str], challenge_id: str, timestamp: str
    ) -> str:
        """Return the hash input for the given draw inputs."""
        return self.encoder(sorted_participants, challenge_id, timestamp)


class EncodingRegistry:
    """Mutable registry mapping encoding keys to definitions."""

    def __init__(self) -> None:
        self._encodings: Dict[str, SeedEncoding] = {}

    def register(self, encoding: SeedEncoding, *, replace: bool = False) -> None:
        """Register an encoding under its key.

        Parameters
        ----------
        encoding : SeedEncoding
            Encoding to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and encoding.key in self._encodings:
            raise ValueError(f"Encoding '{encoding.key}' is already registered")
        self._encodings[encoding.key] = encoding

    def get(self, key: str) -> SeedEncoding:
        """Return the encoding registered under ``key``."""
        try:
            return self._encodings[key]
        except KeyError as exc:
            raise KeyError(f"Unknown seed encoding '{key}'") from exc

    def available_encodings(self) -> Dict[str, SeedEncoding]:
        """Return a copy of the registered encodings keyed by identifier."""
        return dict(self._encodings)


def _delimited(sorted_participants: Sequence[str], challenge_id: str, timestamp: str) -> str:
    """Comma-joined participants, then colon-separated challenge id and timestamp.

    Delimiters inside the fields are not escaped, so ``["a,b", "c"]`` and
    ``["a", "b,c"]`` produce the same input.
    """
    participant_seed = ",".join(sorted_participants)
    return f"{participant_seed}:{challenge_id}:{timestamp}"


def _netstring(value: str) -> str:
    return f"{len(value.encode('utf-8'))}:{value},"


def _length_prefixed(
    sorted_participants: Sequence[str], challenge_id: str, timestamp: str
) -> str:
    """Netstring framing of the participant count, each participant and the context."""
    parts = [_netstring(str(len(sorted_participants)))]
    parts.extend(_netstring(participant) for participant in sorted_participants)
    parts.append(_netstring(challenge_id))
    parts.append(_netstring(timestamp))
    return "".join(parts)


DELIMITED = "delimited"
LENGTH_PREFIXED = "length_prefixed"

DEFAULT_ENCODING_REGISTRY = EncodingRegistry()
DEFAULT_ENCODING_REGISTRY.register(
    SeedEncoding(
        key=DELIMITED,
        encoder=_delimited,
        description=(
            "Sorted participants joined with ',' followed by ':<challenge>:<timestamp>'. "
            "Compatible with draws published before length-prefixed framing existed."
        ),
    )
)
DEFAULT_ENCODING_REGISTRY.register(
    SeedEncoding(
        key=LENGTH_PREFIXED,
        encoder=_length_prefixed,
        description=(
            "Netstring-framed ('<bytes>:<value>,') participant count, participants, "
            "challenge id and timestamp. Unambiguous for any identifier."
        ),
    )
)

__all__ = [
    "DEFAULT_ENCODING_REGISTRY",
    "DELIMITED",
    "EncodingRegistry",
    "LENGTH_PREFIXED",
    "SeedEncoding",
]
