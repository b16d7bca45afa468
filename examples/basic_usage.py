# python
import logging
import sys
import tempfile

from daemonconf import Log, Registry, Severity

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    def defaults(registry):
        registry.set_default("log:level", "info")
        registry.set_default("log:syslog", "no")
        registry.set_default("log:stderr", "yes")
        registry.set_default("server:port", "8080")

    with tempfile.NamedTemporaryFile("w", suffix=".conf", delete=False) as fh:
        fh.write("[log]\nident = exampled\n\n[server]\nport = 9000\nworkers = 4\n")

    Registry.init(defaults)
    if len(sys.argv) > 1:
        Registry.set_override("global:configFile", sys.argv[1])
    Registry.set_override("server:workers", "8")
    Registry.load(fh.name)

    Log.set_use_config_source(True)
    Log.printf(Severity.INFO, "listening on port %d", Registry.get_int("server:port", 80))
    Log.printf(Severity.DEBUG, "not shown at level info")

    for key, value in Registry.iter_section("server"):
        print(key, "=", value)
