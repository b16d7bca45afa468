from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Base config exception."""


class InitError(ConfigError):
    """Raised when the registry stores cannot be created or the defaults populator fails."""


class LoadError(ConfigError):
    """Raised when a configuration file cannot be opened or parsed."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        msg = f"Unable to load configuration file '{path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class IterationAborted(ConfigError):
    """Raised when a section callback asks for iteration to stop early.

    This is a control signal rather than a failure; ``key`` is the entry the
    callback stopped at.
    """

    def __init__(self, key: Optional[str] = None) -> None:
        self.key = key
        super().__init__(f"Iteration aborted at key {key!r}")


class ConfigTornDownError(ConfigError):
    """Raised if operations are attempted after teardown."""
