from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

logger = logging.getLogger("daemonconf.locks")
logger.addHandler(logging.NullHandler())


class ReadWriteLock:
    """
    Reader/writer lock: any number of readers, or a single writer.

    - Writers that are waiting block new readers, so a stream of readers
      cannot starve a writer.
    - A thread holding the write side may take the read side (and the write
      side again) without blocking.
    - A thread holding the read side may take it again, but asking for the
      write side raises RuntimeError instead of deadlocking.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: Dict[int, int] = {}
        self._writer: Optional[int] = None
        self._writer_depth = 0
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._waiting_writers:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            depth = self._readers.get(me, 0)
            if depth == 0:
                raise RuntimeError("Cannot release a read lock that is not held")
            if depth == 1:
                del self._readers[me]
                self._cond.notify_all()
            else:
                self._readers[me] = depth - 1

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                logger.error("Thread %s requested write lock while holding read lock", me)
                raise RuntimeError("Cannot acquire write lock while holding read lock")
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._writer_depth = 1

    def release_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer != me:
                raise RuntimeError("Cannot release a write lock that is not held")
            self._writer_depth -= 1
            if self._writer_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    def is_write_locked(self) -> bool:
        with self._cond:
            return self._writer is not None

    def reader_count(self) -> int:
        with self._cond:
            return len(self._readers)


class Once:
    """
    Run a setup function exactly once, however many threads race to call it.

    Losers of the race block until the winner has finished. If the function
    raises, it is not marked done and the next caller tries again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def __call__(self, func: Callable[[], None]) -> bool:
        if self._done:
            return False
        with self._lock:
            if self._done:
                return False
            func()
            self._done = True
            logger.debug("One-time setup %r completed", getattr(func, "__name__", func))
            return True
