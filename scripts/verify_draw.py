"""Independently re-derive a published FairDraw result.

Needs nothing but the published inputs and outputs; no database access.

Example::

    python scripts/verify_draw.py \\
        --challenge ch123 --timestamp 2024-06-01T00:00:00.000Z \\
        --winner carol \\
        --hash f19761e90deca84984ea30de3515408e69e35640762302fc462d527505dc5e67 \\
        bob alice carol
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from wellquest.fairdraw import (
    DEFAULT_ENCODING_REGISTRY,
    DELIMITED,
    perform_draw,
    verify_draw,
)


def _read_participants(args: argparse.Namespace) -> list[str]:
    participants = list(args.participants)
    if args.participants_file is not None:
        text = Path(args.participants_file).read_text(encoding="utf-8")
        participants.extend(line.strip() for line in text.splitlines() if line.strip())
    return participants


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("participants", nargs="*", help="eligible participant ids")
    parser.add_argument(
        "--participants-file", help="file with one participant id per line"
    )
    parser.add_argument("--challenge", required=True, help="challenge id")
    parser.add_argument("--timestamp", required=True, help="draw timestamp")
    parser.add_argument("--winner", required=True, help="published winner id")
    parser.add_argument("--hash", required=True, help="published verification hash")
    parser.add_argument(
        "--encoding",
        default=DELIMITED,
        choices=sorted(DEFAULT_ENCODING_REGISTRY.available_encodings()),
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    participants = _read_participants(args)
    if not participants:
        print("No participants supplied; nothing to verify.")
        return 2

    ok = verify_draw(
        participants,
        args.challenge,
        args.timestamp,
        args.winner,
        args.hash,
        encoding=args.encoding,
    )
    expected = perform_draw(
        participants, args.challenge, args.timestamp, encoding=args.encoding
    )
    print(f"Recomputed hash:   {expected.verification_hash}")
    print(f"Recomputed winner: {expected.winner} (index {expected.winner_index})")
    print("VERIFIED" if ok else "MISMATCH")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
