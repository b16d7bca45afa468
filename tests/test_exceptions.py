from daemonconf.exceptions import (
    ConfigError,
    ConfigTornDownError,
    InitError,
    IterationAborted,
    LoadError,
)


def test_load_error_message_and_attrs():
    err = LoadError("/etc/daemon.conf", "No such file or directory")
    assert "/etc/daemon.conf" in str(err)
    assert "No such file or directory" in str(err)
    assert err.path == "/etc/daemon.conf"
    assert err.reason == "No such file or directory"


def test_load_error_without_reason():
    err = LoadError("x.conf")
    assert str(err) == "Unable to load configuration file 'x.conf'"


def test_iteration_aborted_carries_key():
    err = IterationAborted("log:level")
    assert err.key == "log:level"
    assert "log:level" in str(err)


def test_custom_exceptions_are_subclasses():
    assert issubclass(InitError, ConfigError)
    assert issubclass(LoadError, ConfigError)
    assert issubclass(IterationAborted, ConfigError)
    assert issubclass(ConfigTornDownError, ConfigError)
