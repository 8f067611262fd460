"""Exception types raised by hoststat."""


class HoststatError(Exception):
    """Base class for all hoststat errors."""


class StatIOError(HoststatError):
    """The kernel statistics source could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot read {path}: {reason}")
        self.path = path


class StatParseError(HoststatError):
    """The aggregate cpu line is missing or malformed."""


class CollectorLookupError(HoststatError):
    """A core-count or memory lookup failed during assembly."""
