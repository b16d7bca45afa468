from types import MappingProxyType

import pytest

from daemonconf import LoadError
from daemonconf.store import ConfigFileParser, IniFileParser, KeyValueStore


def test_kvstore_set_get_delete_case_insensitive():
    store = KeyValueStore()
    store.set("Log:Level", "debug")
    assert store.get("log:level") == "debug"
    assert store.get(" LOG:LEVEL ") == "debug"
    assert "log:LEVEL" in store
    assert store.delete("log:level") is True
    assert store.delete("log:level") is False
    assert store.get("log:level", "notice") == "notice"


def test_kvstore_coerces_values_to_text():
    store = KeyValueStore([("a:int", 5), ("a:flag", True)])
    assert store.get("a:int") == "5"
    assert store.get("a:flag") == "true"
    with pytest.raises(TypeError):
        store.set("a:none", None)
    with pytest.raises(TypeError):
        store.set(3, "x")  # type: ignore[arg-type]


def test_kvstore_preserves_insertion_order():
    store = KeyValueStore()
    for key in ("z:1", "a:2", "m:3"):
        store.set(key, key)
    assert list(store) == ["z:1", "a:2", "m:3"]
    store.set("z:1", "again")
    assert list(store) == ["z:1", "a:2", "m:3"]


def test_kvstore_section_items_and_filter():
    store = KeyValueStore(
        [("log:level", "debug"), ("logging:x", "1"), ("log:ident", "d"), ("global:a", "b")]
    )
    assert list(store.section_items("log")) == [("log:level", "debug"), ("log:ident", "d")]
    assert list(store.section_items("LOG", "Ident")) == [("log:ident", "d")]
    assert list(store.section_items("missing")) == []


def test_kvstore_update_and_snapshot():
    base = KeyValueStore([("a:x", "1"), ("a:y", "2")])
    base.update(KeyValueStore([("a:y", "20"), ("a:z", "30")]))
    snap = base.snapshot()
    assert isinstance(snap, MappingProxyType)
    assert dict(snap) == {"a:x": "1", "a:y": "20", "a:z": "30"}
    base.clear()
    assert len(base) == 0
    assert snap["a:x"] == "1"


def test_ini_parser_conforms_to_protocol():
    assert isinstance(IniFileParser(), ConfigFileParser)


def test_ini_parser_reads_sections(ini_file):
    path = ini_file(
        "[global]\n"
        "name = demo\n"
        "\n"
        "[Log]\n"
        "Level = debug ; inline comment\n"
        'ident = "quoted name"\n'
        "empty =\n"
        "# full line comment\n"
        "[DEFAULT]\n"
        "plain = yes\n"
    )
    store = IniFileParser().parse(path)
    assert store.get("global:name") == "demo"
    assert store.get("log:level") == "debug"
    assert store.get("log:ident") == "quoted name"
    assert store.get("log:empty") == ""
    assert store.get("default:plain") == "yes"
    # [DEFAULT] values are not inherited by other sections
    assert store.get("global:plain") is None


def test_ini_parser_merges_repeated_sections(ini_file):
    path = ini_file("[a]\nx = 1\n[b]\ny = 2\n[a]\nz = 3\n")
    store = IniFileParser().parse(path)
    assert list(store.section_items("a")) == [("a:x", "1"), ("a:z", "3")]


def test_ini_parser_missing_file_raises_load_error(tmp_path, caplog):
    missing = str(tmp_path / "nope.conf")
    with caplog.at_level("ERROR", logger="daemonconf.parser"):
        with pytest.raises(LoadError) as info:
            IniFileParser().parse(missing)
    assert info.value.path == missing
    assert any("Cannot open" in r.getMessage() for r in caplog.records)


def test_ini_parser_keys_before_first_section_use_empty_section(ini_file):
    store = IniFileParser().parse(ini_file("verbose = 1\n[log]\nlevel = debug\n"))
    assert store.get(":verbose") == "1"
    assert store.get("log:level") == "debug"
    assert list(store) == [":verbose", "log:level"]


def test_ini_parser_malformed_file_raises_load_error(ini_file):
    path = ini_file("[a]\n= no key\n")
    with pytest.raises(LoadError):
        IniFileParser().parse(path)
