from __future__ import annotations

import logging
import os
from contextlib import closing
from functools import wraps
from types import MappingProxyType, TracebackType
from typing import Any, Callable, Iterator, List, Optional, Tuple, Type, TypeVar, Union, cast

from daemonconf.exceptions import ConfigTornDownError, InitError, IterationAborted, LoadError

from .locks import Once, ReadWriteLock
from .store import ConfigFileParser, IniFileParser, KeyValueStore
from .utils import atoi, parse_bool

logger = logging.getLogger("daemonconf.registry")
logger.addHandler(logging.NullHandler())

CONFIG_FILE_KEY = "global:configFile"

# Loggers whose records are forwarded to the diagnostics handler.
DIAGNOSTIC_LOGGERS = ("daemonconf.parser", "daemonconf.registry")

F = TypeVar("F", bound=Callable[..., Any])

DefaultsPopulator = Callable[["ConfigRegistry"], Any]
SectionCallback = Callable[[str, str], Any]


def is_torn_down(func: F) -> F:
    """
    Decorator to check if the registry has been torn down before method execution.
    Raises ConfigTornDownError if torn down.
    """

    @wraps(func)
    def wrapper(self: "ConfigRegistry", *args: Any, **kwargs: Any) -> Any:
        if self.torn_down:
            logger.error(f"Attempted {func.__name__} after teardown.")
            raise ConfigTornDownError("Registry has been torn down")
        return func(self, *args, **kwargs)

    return cast(F, wrapper)


class ConfigRegistry:
    """
    Process-wide configuration registry with three-tier resolution.

    Values are resolved from the loaded configuration file (into which
    overrides are folded at load time), then from defaults, then from the
    caller-supplied default. Before a file has been loaded the overrides store
    stands in for the loaded configuration.

    Every mutation holds the write side of a reader/writer lock and every
    lookup holds the read side. The lock itself is created lazily, exactly
    once, by whichever operation runs first.
    """

    def __init__(
        self,
        parser: Optional[ConfigFileParser] = None,
        store_factory: Callable[[], KeyValueStore] = KeyValueStore,
        diagnostics: Optional[Callable[[], logging.Handler]] = None,
    ) -> None:
        self._parser: ConfigFileParser = parser if parser is not None else IniFileParser()
        self._store_factory = store_factory
        self._diagnostics = diagnostics
        self._diagnostics_handler: Optional[logging.Handler] = None

        self._once = Once()
        self._lock: Optional[ReadWriteLock] = None
        self._torn_down = False

        self._defaults: Optional[KeyValueStore] = None
        self._overrides: Optional[KeyValueStore] = None
        self._config: Optional[KeyValueStore] = None

    # one-time setup
    def _setup(self) -> None:
        self._lock = ReadWriteLock()
        if self._diagnostics is not None:
            handler = self._diagnostics()
            for name in DIAGNOSTIC_LOGGERS:
                logging.getLogger(name).addHandler(handler)
            self._diagnostics_handler = handler
        logger.debug("ConfigRegistry lock initialised id=%s", hex(id(self)))

    @property
    def _rwlock(self) -> ReadWriteLock:
        self._once(self._setup)
        assert self._lock is not None
        return self._lock

    @property
    def torn_down(self) -> bool:
        """Return True if the registry has been torn down."""
        return self._torn_down

    @property
    def loaded(self) -> bool:
        """Return True once a configuration file has been loaded successfully."""
        with self._rwlock.read_locked():
            return self._config is not None

    # lifecycle
    def _ensure_stores_unlocked(self) -> None:
        try:
            if self._defaults is None:
                self._defaults = self._store_factory()
            # Overrides only exist until the first successful load.
            if self._overrides is None and self._config is None:
                self._overrides = self._store_factory()
        except Exception as exc:
            logger.error("Unable to create configuration stores: %s", exc)
            raise InitError(f"Unable to create configuration stores: {exc}") from exc

    @is_torn_down
    def init(self, defaults_populator: Optional[DefaultsPopulator] = None) -> None:
        """
        Create the defaults and overrides stores, then run ``defaults_populator``.

        Stores that already exist are kept, so calling init() again (or from
        several threads at once) never discards earlier values. The populator
        receives the registry and is called without the lock held, so it can
        call set_default() freely.
        """
        with self._rwlock.write_locked():
            self._ensure_stores_unlocked()
        if defaults_populator is not None:
            try:
                defaults_populator(self)
            except Exception as exc:
                logger.error("Defaults populator %r failed: %s", defaults_populator, exc)
                raise InitError(f"Defaults populator failed: {exc}") from exc
        logger.debug("ConfigRegistry initialised")

    @is_torn_down
    def load(self, default_path: Union[str, "os.PathLike[str]"]) -> None:
        """
        Load the configuration file, replacing any previously loaded one.

        The path comes from ``global:configFile`` if set, else ``default_path``.
        On the first successful load, overrides are folded into the new
        configuration and the overrides store is discarded. On failure a
        LoadError is raised and the registry is left as it was.
        """
        with self._rwlock.write_locked():
            path = self._lookup_unlocked(CONFIG_FILE_KEY, os.fspath(default_path))
            assert path is not None
            logger.debug("loading configuration file '%s'", path)
            try:
                loaded = self._parser.parse(path)
            except (OSError, ValueError) as exc:
                logger.error("Failed to load configuration file '%s': %s", path, exc)
                raise LoadError(path, str(exc)) from exc
            if self._overrides is not None:
                loaded.update(self._overrides)
                self._overrides = None
            self._config = loaded
            logger.info("Configuration loaded from '%s' entries=%d", path, len(loaded))

    def destroy(self) -> None:
        """
        Tear down the registry, discarding every store and detaching diagnostics.
        """
        with self._rwlock.write_locked():
            self._torn_down = True
            for store in (self._defaults, self._overrides, self._config):
                if store is not None:
                    store.clear()
            self._defaults = None
            self._overrides = None
            self._config = None
        if self._diagnostics_handler is not None:
            for name in DIAGNOSTIC_LOGGERS:
                logging.getLogger(name).removeHandler(self._diagnostics_handler)
            self._diagnostics_handler = None
        logger.info("ConfigRegistry torn down.")

    # mutation
    @is_torn_down
    def set_override(self, key: str, value: Any) -> None:
        """
        Force ``key`` to ``value`` regardless of the file contents.

        Before load the value is kept aside and applied at load time; after
        load it is written straight into the loaded configuration.
        """
        with self._rwlock.write_locked():
            self._ensure_stores_unlocked()
            target = self._overrides if self._overrides is not None else self._config
            assert target is not None
            target.set(key, value)
            logger.debug("Override set key=%s", key)

    @is_torn_down
    def set_default(self, key: str, value: Any) -> None:
        """
        Set the value used when neither an override nor the file provides one.
        """
        with self._rwlock.write_locked():
            self._ensure_stores_unlocked()
            if self._defaults is not None:
                self._defaults.set(key, value)
            elif self._config is not None and key not in self._config:
                # Unreachable while defaults live for the registry's lifetime;
                # kept so a default never clobbers a loaded or overridden value.
                self._config.set(key, value)

    # lookup
    def _primary_unlocked(self) -> Optional[KeyValueStore]:
        return self._config if self._config is not None else self._overrides

    def _sources_unlocked(self) -> List[KeyValueStore]:
        """Lookup sources in precedence order, highest first."""
        return [s for s in (self._primary_unlocked(), self._defaults) if s is not None]

    def _lookup_unlocked(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for source in self._sources_unlocked():
            value = source.get(key)
            if value is not None:
                return value
        return default

    @is_torn_down
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Return the value for ``key``, falling back to defaults and then ``default``.
        """
        with self._rwlock.read_locked():
            return self._lookup_unlocked(key, default)

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.get(key, default)

    @is_torn_down
    def get_into(self, key: str, buffer: bytearray, default: Optional[str] = None) -> int:
        """
        Copy the UTF-8 encoded value into ``buffer``, in the manner of readinto().

        At most ``len(buffer)`` bytes are written. The full encoded length is
        returned, so a result larger than the buffer means the value was
        truncated. Returns 0 if there is no value.
        """
        with self._rwlock.read_locked():
            value = self._lookup_unlocked(key, default)
        if value is None:
            return 0
        data = value.encode("utf-8")
        n = min(len(data), len(buffer))
        buffer[:n] = data[:n]
        return len(data)

    @is_torn_down
    def get_int(self, key: str, default: int = 0) -> int:
        with self._rwlock.read_locked():
            value = self._lookup_unlocked(key)
        if value is None:
            return default
        return atoi(value)

    @is_torn_down
    def get_bool(self, key: str, default: bool = False) -> bool:
        with self._rwlock.read_locked():
            value = self._lookup_unlocked(key)
        return parse_bool(value, default)

    # iteration
    @is_torn_down
    def iter_section(self, section: str, key: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        """
        Iterate ``(full_key, value)`` pairs of ``section`` in store order.

        The read lock is taken on the first next() and held until the
        generator is exhausted or closed: other threads may keep reading but
        writers block for the whole traversal. Consume it from the thread that
        started it, and wrap it in contextlib.closing() when breaking out early
        in code that keeps a reference to the generator. Calling a setter from
        inside the loop raises RuntimeError.
        """
        return self._iter_section(section, key)

    def _iter_section(self, section: str, key: Optional[str]) -> Iterator[Tuple[str, str]]:
        with self._rwlock.read_locked():
            primary = self._primary_unlocked()
            if primary is None:
                return
            yield from primary.section_items(section, key)

    @is_torn_down
    def for_each_in_section(
        self, section: str, callback: SectionCallback, key: Optional[str] = None
    ) -> None:
        """
        Call ``callback(full_key, value)`` for each entry of ``section``.

        A truthy return from the callback stops the iteration and raises
        IterationAborted. The callback runs under the read lock.
        """
        with closing(self._iter_section(section, key)) as entries:
            for full_key, value in entries:
                if callback(full_key, value):
                    logger.debug("Iteration of section %r aborted at %r", section, full_key)
                    raise IterationAborted(full_key)

    @is_torn_down
    def snapshot(self) -> MappingProxyType[str, str]:
        """
        Return a read-only view of the effective configuration (defaults overlaid by values).
        """
        merged: dict = {}
        with self._rwlock.read_locked():
            for source in reversed(self._sources_unlocked()):
                merged.update(source.snapshot())
        return MappingProxyType(merged)

    def __contains__(self, key: object) -> bool:
        if self.torn_down or not isinstance(key, str):
            return False
        with self._rwlock.read_locked():
            return self._lookup_unlocked(key) is not None

    def __repr__(self) -> str:
        return f"<ConfigRegistry loaded={self._config is not None} torn_down={self._torn_down}>"

    def __enter__(self) -> "ConfigRegistry":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.destroy()
