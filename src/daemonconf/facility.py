from __future__ import annotations

import logging
import sys
import syslog
import threading
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import IO, TYPE_CHECKING, Any, Dict, Optional, Union

from .exceptions import ConfigError
from .transport import SyslogTransport, SystemSyslog
from .utils import atoi

if TYPE_CHECKING:
    from .registry import ConfigRegistry

logger = logging.getLogger("daemonconf.facility")
logger.addHandler(logging.NullHandler())


class Severity(IntEnum):
    EMERG = 0
    ALERT = 1
    CRIT = 2
    ERR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


# Only facilities this platform's syslog defines are members.
_FACILITY_KEYWORDS = (
    "kern", "user", "mail", "daemon", "auth", "syslog", "lpr", "news", "uucp", "cron",
    "authpriv", "ftp", "security", "remoteauth",
    "local0", "local1", "local2", "local3", "local4", "local5", "local6", "local7",
)

Facility = IntEnum(  # type: ignore[misc]
    "Facility",
    {
        name.upper(): getattr(syslog, "LOG_" + name.upper())
        for name in _FACILITY_KEYWORDS
        if hasattr(syslog, "LOG_" + name.upper())
    },
    module=__name__,
)


_LEVEL_NAMES: Dict[str, Severity] = {
    "emerg": Severity.EMERG,
    "emergency": Severity.EMERG,
    "alert": Severity.ALERT,
    "crit": Severity.CRIT,
    "critical": Severity.CRIT,
    "err": Severity.ERR,
    "error": Severity.ERR,
    "warn": Severity.WARNING,
    "warning": Severity.WARNING,
    "notice": Severity.NOTICE,
    "info": Severity.INFO,
    "debug": Severity.DEBUG,
}

_FACILITY_NAMES: Dict[str, Facility] = {f.name.lower(): f for f in Facility}


def parse_level(name: str) -> int:
    """
    Map a severity name (emerg .. debug, any case) to its level.

    Unknown names are parsed as a decimal number, so "6" means INFO.
    """
    level = _LEVEL_NAMES.get(name.strip().lower())
    if level is not None:
        return level
    return atoi(name)


def parse_facility(name: str) -> Facility:
    """Map a syslog facility keyword (any case) to its code, defaulting to USER."""
    return _FACILITY_NAMES.get(name.strip().lower(), Facility.USER)


@dataclass(frozen=True)
class LogSettings:
    ident: str = "(unknown)"
    level: int = Severity.NOTICE
    facility: int = Facility.DAEMON
    use_syslog: bool = True
    use_stderr: bool = False


# keys read when settings come from the registry
LOG_KEYS = {
    "stderr": "log:stderr",
    "syslog": "log:syslog",
    "level": "log:level",
    "facility": "log:facility",
    "ident": "log:ident",
}


class LoggingFacility:
    """
    Send daemon log messages to syslog, standard error, or both.

    Settings come either from explicit setter calls or, once
    ``set_use_config_source(True)`` has been called, from the ``log:*`` keys of
    a ConfigRegistry. Values read from the registry replace the explicit
    ones, except the ident, which reverts once the config source is turned
    off. The transport is opened lazily by the first message and
    every setter closes it again, so the next message picks up the new
    settings whatever order configuration and logging calls happen in.
    """

    def __init__(
        self,
        registry: Optional["ConfigRegistry"] = None,
        transport: Optional[SyslogTransport] = None,
        stream: Optional[IO[str]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._registry = registry
        self._transport: SyslogTransport = transport if transport is not None else SystemSyslog()
        self._stream = stream
        self._settings = LogSettings()
        self._active = self._settings
        self._use_config_source = False
        self._is_open = False

    # state
    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def use_config_source(self) -> bool:
        return self._use_config_source

    @property
    def settings(self) -> LogSettings:
        """Settings in effect while open; the explicit settings otherwise."""
        with self._lock:
            return self._active if self._is_open else self._settings

    def _update(self, **changes: Any) -> None:
        with self._lock:
            self._settings = replace(self._settings, **changes)
            self._use_config_source = False
            self._reset_unlocked()

    def set_ident(self, ident: str) -> None:
        self._update(ident=ident)

    def set_level(self, level: Union[int, str]) -> None:
        if isinstance(level, str):
            level = parse_level(level)
        self._update(level=int(level))

    def set_facility(self, facility: Union[int, str]) -> None:
        if isinstance(facility, str):
            facility = parse_facility(facility)
        self._update(facility=int(facility))

    def set_use_stderr(self, flag: bool) -> None:
        self._update(use_stderr=bool(flag))

    def set_use_syslog(self, flag: bool) -> None:
        self._update(use_syslog=bool(flag))

    def set_use_config_source(self, flag: bool) -> None:
        with self._lock:
            if self._use_config_source == bool(flag):
                return
            self._use_config_source = bool(flag)
            self._reset_unlocked()

    # transport
    def _reset_unlocked(self) -> None:
        if self._is_open and self._active.use_syslog:
            try:
                self._transport.close()
            except OSError as exc:
                logger.debug("Closing syslog transport failed: %s", exc)
        self._is_open = False

    def reset(self) -> None:
        """Close the transport; the next message reopens it. Safe to call repeatedly."""
        with self._lock:
            self._reset_unlocked()

    def _settings_from_registry(self, registry: "ConfigRegistry") -> LogSettings:
        return LogSettings(
            ident=registry.get_string(LOG_KEYS["ident"], "(none)") or "(none)",
            level=parse_level(registry.get_string(LOG_KEYS["level"], "notice") or ""),
            facility=parse_facility(registry.get_string(LOG_KEYS["facility"], "user") or ""),
            use_syslog=registry.get_bool(LOG_KEYS["syslog"], True),
            use_stderr=registry.get_bool(LOG_KEYS["stderr"], False),
        )

    def open(self) -> LogSettings:
        """
        (Re)open the transport and return the settings now in effect.
        """
        while True:
            with self._lock:
                registry = self._registry if self._use_config_source else None
                explicit = self._settings
            # The registry is consulted without our lock held, so a thread that
            # holds the registry write lock can still log.
            settings = explicit
            if registry is not None:
                try:
                    settings = self._settings_from_registry(registry)
                except ConfigError as exc:
                    logger.debug("Reading log settings from registry failed: %s", exc)
            with self._lock:
                current = self._registry if self._use_config_source else None
                if current is not registry or self._settings is not explicit:
                    continue
                self._reset_unlocked()
                if registry is not None:
                    # Config-derived values outlive the config source; the ident does not.
                    self._settings = replace(settings, ident=explicit.ident)
                if settings.use_syslog:
                    try:
                        self._transport.open(settings.ident, settings.facility)
                    except OSError as exc:
                        logger.debug("Opening syslog transport failed: %s", exc)
                self._active = settings
                self._is_open = True
                logger.debug("Log transport opened settings=%r", settings)
                return settings

    def _ensure_open(self) -> LogSettings:
        with self._lock:
            if self._is_open:
                return self._active
        return self.open()

    # emission
    def emit(self, level: int, message: str) -> None:
        """
        Emit ``message`` at ``level`` unless it is less severe than the threshold.
        """
        settings = self._ensure_open()
        if level > settings.level:
            return
        if settings.use_syslog:
            try:
                self._transport.send(int(level), message.rstrip("\n"))
            except OSError as exc:
                logger.debug("syslog send failed: %s", exc)
        if settings.use_stderr:
            stream = self._stream if self._stream is not None else sys.stderr
            text = f"{settings.ident}: {message}"
            if not text.endswith("\n"):
                text += "\n"
            try:
                stream.write(text)
                stream.flush()
            except (OSError, ValueError) as exc:
                logger.debug("stderr write failed: %s", exc)

    def printf(self, level: int, fmt: str, *args: Any) -> None:
        self.emit(level, fmt % args if args else fmt)

    emit_formatted = printf

    def __repr__(self) -> str:
        return (
            f"<LoggingFacility open={self._is_open} "
            f"use_config_source={self._use_config_source} settings={self.settings!r}>"
        )


def severity_for(levelno: int) -> Severity:
    """Map a stdlib logging level number onto a syslog severity."""
    if levelno >= logging.CRITICAL:
        return Severity.CRIT
    if levelno >= logging.ERROR:
        return Severity.ERR
    if levelno >= logging.WARNING:
        return Severity.WARNING
    if levelno >= logging.INFO:
        return Severity.INFO
    return Severity.DEBUG


class FacilityHandler(logging.Handler):
    """logging.Handler forwarding records to a LoggingFacility."""

    def __init__(self, facility: LoggingFacility, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.facility = facility

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.facility.emit(severity_for(record.levelno), self.format(record))
        except Exception:
            self.handleError(record)
