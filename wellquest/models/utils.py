"""Utility helpers for the models package."""

from __future__ import annotations

import secrets

PUBLIC_ID_BYTES = 16


def generate_public_id() -> str:
    """Return an opaque 32-character hex identifier.

    Public identifiers are what leave the database: they are the
    participant and challenge identifiers fed into FairDraw and published
    with each draw.
    """

    return secrets.token_hex(PUBLIC_ID_BYTES)
