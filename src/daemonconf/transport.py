from __future__ import annotations

import logging
import syslog
from typing import Protocol

from typing_extensions import runtime_checkable

logger = logging.getLogger("daemonconf.transport")
logger.addHandler(logging.NullHandler())


@runtime_checkable
class SyslogTransport(Protocol):
    def open(self, ident: str, facility: int) -> None: ...

    def send(self, priority: int, message: str) -> None: ...

    def close(self) -> None: ...


class SystemSyslog:
    """SyslogTransport backed by the local syslog daemon via the stdlib ``syslog`` module."""

    def __init__(self) -> None:
        self._opened = False

    @property
    def opened(self) -> bool:
        return self._opened

    def open(self, ident: str, facility: int) -> None:
        syslog.openlog(ident=ident, logoption=syslog.LOG_PID | syslog.LOG_NDELAY, facility=facility)
        self._opened = True
        logger.debug("syslog opened ident=%r facility=%d", ident, facility)

    def send(self, priority: int, message: str) -> None:
        syslog.syslog(priority, message)

    def close(self) -> None:
        if self._opened:
            syslog.closelog()
            self._opened = False
            logger.debug("syslog closed")
