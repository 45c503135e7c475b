"""
Error taxonomy for the key level trackers.

Only two conditions are raised as exceptions:
- InvalidConfigurationError: rejected once, before any bar is processed.
- OutOfOrderBarError: a bar index that does not strictly increase.

Insufficient auxiliary history is not an error. Trackers simply skip the
update and the affected levels stay unpublished until history exists.
"""

from __future__ import annotations


class KeyLevelsError(Exception):
    """Base class for all keylevels errors."""
    pass


class InvalidConfigurationError(KeyLevelsError, ValueError):
    """Raised when a configuration is refused at startup."""

    def __init__(self, errors: list[str] | str, fix: str | None = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        self.fix = fix

        lines = ["Invalid key levels configuration:"]
        lines.extend(f"  - {e}" for e in self.errors)
        if fix:
            lines.extend(["", f"Fix: {fix}"])
        super().__init__("\n".join(lines))


class OutOfOrderBarError(KeyLevelsError, ValueError):
    """Raised when a primary bar does not advance the sequence index."""

    def __init__(self, bar_idx: int, last_idx: int):
        self.bar_idx = bar_idx
        self.last_idx = last_idx
        super().__init__(
            f"Bar index must increase monotonically. "
            f"Got bar.idx={bar_idx}, but last processed was {last_idx}.\n"
            f"\n"
            f"Fix: Ensure bars are processed in chronological order."
        )
