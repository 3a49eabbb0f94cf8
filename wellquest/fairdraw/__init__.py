"""Utilities for the FairDraw subsystem."""

from .encoding import (
    DEFAULT_ENCODING_REGISTRY,
    DELIMITED,
    LENGTH_PREFIXED,
    EncodingRegistry,
    SeedEncoding,
)
from .engine import (
    DrawResult,
    InvalidInputError,
    build_verification_reference,
    format_draw_timestamp,
    generate_hash,
    perform_draw,
    verify_draw,
)

__all__ = [
    "DEFAULT_ENCODING_REGISTRY",
    "DELIMITED",
    "LENGTH_PREFIXED",
    "DrawResult",
    "EncodingRegistry",
    "InvalidInputError",
    "SeedEncoding",
    "build_verification_reference",
    "format_draw_timestamp",
    "generate_hash",
    "perform_draw",
    "verify_draw",
]
