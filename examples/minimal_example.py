from daemonconf import LoggingFacility, Severity

if __name__ == "__main__":
    log = LoggingFacility()
    log.set_ident("minimal")
    log.set_use_syslog(False)
    log.set_use_stderr(True)
    log.emit(Severity.NOTICE, "hello from minimal")
