"""Ambient default scale used when a call omits its scale argument."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable
import logging
import os

from bcbridge.bignum import check_scale

DEFAULT_SCALE_ENV = "BCBRIDGE_DEFAULT_SCALE"

logger = logging.getLogger(__name__)

ScaleSource = Callable[[], int]

_AMBIENT_SCALE: ContextVar[int | None] = ContextVar(
    "bcbridge_ambient_scale",
    default=None,
)


def configured_default_scale() -> int:
    """Process-wide default scale from the environment, falling back to 0."""
    raw = os.environ.get(DEFAULT_SCALE_ENV, "").strip()
    if not raw:
        return 0
    try:
        return check_scale(int(raw))
    except ValueError:
        logger.warning(
            "Ignoring invalid %s=%r; using default scale 0", DEFAULT_SCALE_ENV, raw
        )
        return 0


def current_default_scale() -> int:
    """Read the ambient default scale for the current context."""
    scale = _AMBIENT_SCALE.get()
    if scale is None:
        return configured_default_scale()
    return scale


@contextmanager
def default_scale_scope(scale: int):
    """Set the ambient default scale for the duration of the block."""
    token = _AMBIENT_SCALE.set(check_scale(scale))
    try:
        yield scale
    finally:
        _AMBIENT_SCALE.reset(token)
