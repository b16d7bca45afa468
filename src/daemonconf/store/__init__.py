from .adaptors import ConfigFileParser, IniFileParser
from .kvstore import SECTION_SEPARATOR, KeyValueStore

__all__ = ["KeyValueStore", "SECTION_SEPARATOR", "ConfigFileParser", "IniFileParser"]
