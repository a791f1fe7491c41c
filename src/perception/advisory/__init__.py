"""Tactical advisories from the external reasoning service."""

from .client import (
    FALLBACK_ADVISORY,
    OFFLINE_MESSAGE,
    AdvisoryClient,
    AdvisoryUnavailable,
    build_prompt,
)
from .speaker import NullSpeaker, Speaker

__all__ = [
    "FALLBACK_ADVISORY",
    "OFFLINE_MESSAGE",
    "AdvisoryClient",
    "AdvisoryUnavailable",
    "NullSpeaker",
    "Speaker",
    "build_prompt",
]
