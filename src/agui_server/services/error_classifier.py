"""Transient vs permanent classification of model backend failures"""
from typing import Iterator

from ..core.errors import ModelPermanentError, ModelTransientError

TRANSIENT_PATTERNS = (
    "connection refused",
    "broken pipe",
    "timed out",
    "timeout",
    "connect to",
)


def iter_cause_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield ``error`` followed by its ``__cause__``/``__context__`` ancestors.

    Cycles are cut by identity so a self-referencing chain terminates.
    """
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _matches_transient_text(error: BaseException) -> bool:
    text = str(error).lower()
    return any(pattern in text for pattern in TRANSIENT_PATTERNS)


def is_transient(error: BaseException) -> bool:
    """Return True when ``error`` looks like a retryable network-level failure.

    An explicit ``ModelPermanentError`` is never transient. Otherwise the error
    and every error in its cause chain are checked for connection/timeout
    exception types and for the transient text patterns.
    """
    if isinstance(error, ModelPermanentError):
        return False

    for err in iter_cause_chain(error):
        if isinstance(err, (ModelTransientError, ConnectionError, TimeoutError)):
            return True
        if _matches_transient_text(err):
            return True
    return False


def classify(error: BaseException) -> str:
    """Label an error ``"transient"`` or ``"permanent"`` (used in log lines)"""
    return "transient" if is_transient(error) else "permanent"
