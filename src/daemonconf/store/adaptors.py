from __future__ import annotations

import configparser
import itertools
import logging
from typing import Protocol

from typing_extensions import runtime_checkable

from daemonconf.exceptions import LoadError

from .kvstore import SECTION_SEPARATOR, KeyValueStore

logger = logging.getLogger("daemonconf.parser")
logger.addHandler(logging.NullHandler())

# No header can match "[]", so [DEFAULT] stays an ordinary section.
_NO_DEFAULT_SECTION = ""
# Holds keys that appear before the first header; stored under an empty section name.
_LEADING_SECTION = "\x00"


@runtime_checkable
class ConfigFileParser(Protocol):
    def parse(self, path: str) -> KeyValueStore: ...


class IniFileParser:
    """
    Parse INI files into a KeyValueStore keyed by ``section:key``.

    Inline comments start with ``;`` or ``#`` after whitespace, values wrapped
    in double quotes are unquoted, and repeated sections are merged. Keys that
    appear before the first section header are stored as ``:key``.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def _new_parser(self) -> configparser.ConfigParser:
        return configparser.ConfigParser(
            interpolation=None,
            strict=False,
            allow_no_value=True,
            inline_comment_prefixes=(";", "#"),
            default_section=_NO_DEFAULT_SECTION,
        )

    @staticmethod
    def _unquote(value: str) -> str:
        if len(value) >= 2 and value[0] == value[-1] == '"':
            return value[1:-1]
        return value

    def parse(self, path: str) -> KeyValueStore:
        parser = self._new_parser()
        try:
            with open(path, encoding=self._encoding) as fh:
                parser.read_file(itertools.chain([f"[{_LEADING_SECTION}]\n"], fh), source=path)
        except OSError as exc:
            logger.error("Cannot open configuration file '%s': %s", path, exc.strerror or exc)
            raise LoadError(path, str(exc.strerror or exc)) from exc
        except (configparser.Error, UnicodeDecodeError) as exc:
            logger.error("Cannot parse configuration file '%s': %s", path, exc)
            raise LoadError(path, str(exc)) from exc

        store = KeyValueStore()
        for section in parser.sections():
            for name, value in parser.items(section, raw=True):
                name_section = "" if section == _LEADING_SECTION else section
                store.set(f"{name_section}{SECTION_SEPARATOR}{name}", self._unquote(value or ""))
        logger.debug("Parsed '%s': %d entries", path, len(store))
        return store
