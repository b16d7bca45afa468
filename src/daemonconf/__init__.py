"""
daemonconf: process-wide configuration and logging for daemons.

- Resolves configuration values override > loaded file > default > caller default.
- Loads INI files into ``section:key`` addressed stores.
- Guards every store with a reader/writer lock for concurrent access.
- Sends log messages to syslog and/or standard error, configured either by
  explicit calls or by the ``log:*`` keys of the loaded configuration.
"""

from __future__ import annotations

import logging

from daemonconf.exceptions import (
    ConfigError,
    ConfigTornDownError,
    InitError,
    IterationAborted,
    LoadError,
)
from daemonconf.facility import (
    Facility,
    FacilityHandler,
    LoggingFacility,
    LogSettings,
    Severity,
    parse_facility,
    parse_level,
)
from daemonconf.registry import CONFIG_FILE_KEY, ConfigRegistry
from daemonconf.store import ConfigFileParser, IniFileParser, KeyValueStore
from daemonconf.transport import SyslogTransport, SystemSyslog


def _route_parse_errors() -> logging.Handler:
    # Resolved on the registry's first use, after Log exists.
    return FacilityHandler(Log, logging.ERROR)


# Singleton instances for module-level access by the host daemon
Registry = ConfigRegistry(diagnostics=_route_parse_errors)
Log = LoggingFacility(Registry)

__all__ = [
    "Registry",
    "Log",
    "ConfigRegistry",
    "LoggingFacility",
    "LogSettings",
    "FacilityHandler",
    "Severity",
    "Facility",
    "parse_level",
    "parse_facility",
    "KeyValueStore",
    "ConfigFileParser",
    "IniFileParser",
    "SyslogTransport",
    "SystemSyslog",
    "CONFIG_FILE_KEY",
    "ConfigError",
    "InitError",
    "LoadError",
    "IterationAborted",
    "ConfigTornDownError",
]
