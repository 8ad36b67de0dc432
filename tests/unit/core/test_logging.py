"""Tests for logger level filtering and sink cleanup."""

import pytest

from topbase.core.log import (
    LEVELS,
    ConsoleSink,
    FileSink,
    LogfireSink,
    Logger,
    OTLPSink,
    setup_logger,
)


pytestmark = pytest.mark.usefixtures("restore_logger")


def _file_logger(tmp_path, level):
    log_file = tmp_path / f"{level}.log"
    logger = setup_logger(
        log_root=tmp_path,
        run_name="test",
        console=ConsoleSink(enabled=False),
        otlp=OTLPSink(enabled=False),
        file=FileSink(enabled=True, level=level, path=str(log_file)),
        logfire=LogfireSink(enabled=False),
    )
    return logger, log_file


def _emit_all(logger):
    logger.spew("SPEW message")
    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.warn("WARN message")
    logger.error("ERROR message")
    logger.close()


def test_spew_level_includes_everything(tmp_path):
    """spew is below trace; every git invocation is logged there."""
    logger, log_file = _file_logger(tmp_path, "spew")
    _emit_all(logger)

    content = log_file.read_text()
    for name in ("SPEW", "TRACE", "DEBUG", "INFO", "WARN", "ERROR"):
        assert f"{name} message" in content


def test_debug_level_filters_trace_and_spew(tmp_path):
    logger, log_file = _file_logger(tmp_path, "debug")
    _emit_all(logger)

    content = log_file.read_text()
    assert "SPEW message" not in content
    assert "TRACE message" not in content
    assert "DEBUG message" in content
    assert "WARN message" in content


def test_warn_level_filters_below_warn(tmp_path):
    logger, log_file = _file_logger(tmp_path, "warn")
    _emit_all(logger)

    content = log_file.read_text()
    assert "INFO message" not in content
    assert "WARN message" in content
    assert "ERROR message" in content


def test_structured_fields_reach_the_file(tmp_path):
    logger, log_file = _file_logger(tmp_path, "info")
    logger.info("{target} moved", target="master", dry_run=True)
    logger.close()

    content = log_file.read_text()
    assert "master moved" in content
    assert "dry_run=True" in content


def test_level_ordering():
    """Lower severity number means more verbose."""
    order = ["spew", "trace", "debug", "info", "warn", "error", "fatal"]
    values = [LEVELS[name] for name in order]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_sink_inherits_logger_level():
    logger = Logger(level="debug", file=FileSink(level="error"))
    assert logger.console.level == "debug"
    assert logger.file.level == "error"


def test_logger_closes_file_via_context_manager(tmp_path):
    logger = Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(tmp_path / "ctx.log")),
        otlp=OTLPSink(enabled=False),
        logfire=LogfireSink(enabled=False),
    )
    logger.setup(log_root=tmp_path, run_name="test")
    assert not logger.file._file.closed

    with pytest.raises(ValueError), logger:
        logger.info("before exception")
        raise ValueError("boom")

    assert logger.file._file.closed
    assert "before exception" in (tmp_path / "ctx.log").read_text()


def test_file_path_template(tmp_path):
    logger = Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True),
        otlp=OTLPSink(enabled=False),
        logfire=LogfireSink(enabled=False),
    )
    logger.setup(log_root=tmp_path, run_name="nightly")
    logger.close()

    assert (tmp_path / "nightly" / "topbase.log").exists()


def test_proxy_is_silent_before_setup(monkeypatch):
    from topbase.core import log

    monkeypatch.setattr(log, "_current_logger", None)
    with log.logger.span("no logger yet {value}", value=1):
        log.logger.info("dropped")
        log.logger.warning("dropped too")
