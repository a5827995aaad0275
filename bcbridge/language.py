"""Language tag resolution for interface registration."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

CONTENT_LANGUAGE_ENV = "BCBRIDGE_CONTENT_LANGUAGE"
_FALLBACK_LANGUAGE = "en"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderingContext:
    """Active parsing/rendering context of the host, if any."""

    target_language: str | None = None


def content_language() -> str:
    """Process-wide content language code."""
    configured = os.environ.get(CONTENT_LANGUAGE_ENV, "").strip()
    return configured or _FALLBACK_LANGUAGE


def resolve_language_code(context: RenderingContext | None = None) -> str:
    """Prefer the rendering context's target language, else the content language."""
    if context is not None and context.target_language:
        return context.target_language
    code = content_language()
    logger.debug("No rendering context language; falling back to %s", code)
    return code
