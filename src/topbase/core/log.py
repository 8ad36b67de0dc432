"""Logger with composable output sinks, backed by logfire."""

from __future__ import annotations

import contextlib
from abc import abstractmethod
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from topbase.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the active Logger.

    Before setup_logger() runs every method is a no-op, so library
    code can log unconditionally.
    """

    def __getattr__(self, name):
        if _current_logger is None:
            if name == "span":
                return lambda *args, **kwargs: contextlib.nullcontext()

            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Imported everywhere as `from topbase.core.log import logger`
logger = _LoggerProxy()


# Level name -> OpenTelemetry severity number
LEVELS = {
    'spew': logs_pb2.SEVERITY_NUMBER_TRACE,
    'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,
    'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
    'info': logs_pb2.SEVERITY_NUMBER_INFO,
    'warn': logs_pb2.SEVERITY_NUMBER_WARN,
    'error': logs_pb2.SEVERITY_NUMBER_ERROR,
    'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
}

# Instrumentation attributes that never belong in a log line
_INTERNAL_PREFIXES = (
    'otel.', 'telemetry.', 'service.', 'process.', 'code.', 'logfire.',
)


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum level."""

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = LEVELS.get(
            (min_level or 'info').lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """One log destination.

    Sinks own whatever they open (files, exporters) and release it
    in close(), which the Logger reaches through the close cascade.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Minimum level written by this sink; None inherits "
            "Logger.level. One of: spew, trace, debug, info, warn, "
            "error, fatal"
        )
    )
    format_template: str | None = Field(
        default=None,
        description=(
            "Line template with {timestamp}, {level}, {message} and "
            "{location}; None writes span JSON"
        )
    )

    _processor: Any = PrivateAttr(default=None)

    @staticmethod
    def _level_name(level_num: int) -> str:
        names = sorted(LEVELS, key=LEVELS.get, reverse=True)
        return next(
            (name for name in names if level_num >= LEVELS[name]),
            "unknown",
        )

    def _format_span(self, span) -> str:
        """Render a span as one line, followed by its log fields."""
        if not self.format_template:
            return span.to_json() + "\n"

        from datetime import UTC, datetime

        attrs = dict(span.attributes or {})
        filepath = attrs.get("code.filepath")
        try:
            line = self.format_template.format(
                timestamp=datetime.fromtimestamp(
                    span.start_time / 1e9, tz=UTC
                ),
                level=self._level_name(attrs.get(
                    "logfire.level_num", LEVELS['info']
                )),
                message=attrs.get("logfire.msg", span.name),
                location=(
                    f"{filepath}:{attrs.get('code.lineno', '')}"
                    if filepath else ""
                ),
            )
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        fields = sorted(
            (key, value) for key, value in attrs.items()
            if not key.startswith(_INTERNAL_PREFIXES)
        )
        if fields:
            line += " │ " + " ".join(f"{k}={v!r}" for k, v in fields)
        return line + "\n"

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Return an OpenTelemetry span processor, or None."""

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Console output, rendered by logfire itself."""

    verbose: bool = Field(default=False, description="Show span details")
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, run_name: str):
        return None


class OTLPSink(Sink):
    """OTLP telemetry export (SigNoz, Jaeger, ...)."""

    enabled: bool = Field(default=False, description="Enable OTLP export")
    endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP gRPC endpoint"
    )
    insecure: bool = Field(
        default=True,
        description="Use insecure connection (no TLS)"
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Optional headers for authentication"
    )

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(
            endpoint=self.endpoint,
            insecure=self.insecure,
            headers=self.headers or None,
        )
        if self.level:
            exporter = LevelFilteringExporter(exporter, self.level)
        return BatchSpanProcessor(exporter)


class FileSink(Sink):
    """Plain-text log file, one line per span."""

    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(
        default="{log_root}/{run_name}/topbase.log",
        description="Log file path template"
    )
    format_template: str | None = Field(
        default="{timestamp:%Y-%m-%d %H:%M:%S} {level:<5} {message}",
        description="Line format"
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open for the lifetime of the sink
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span,
        )
        return SimpleSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        # Processor first so pending spans reach the file
        super().close()
        if self._file and not self._file.closed:
            with contextlib.suppress(Exception):
                self._file.flush()
                self._file.close()


class LogfireSink(Sink):
    """Logfire.dev cloud sink."""

    enabled: bool = Field(
        default=False,
        description="Send telemetry to logfire.dev cloud"
    )
    token: str | None = Field(
        default=None,
        description="API token (or use LOGFIRE_TOKEN env var)"
    )

    def create_processor(self, log_root: Path, run_name: str):
        return None


class Logger(BaseConfig):
    """Logger with composable output sinks.

    Closing the Logger closes every sink through the
    BaseCloseable cascade.
    """

    level: str = Field(
        default="info",
        description=(
            "Default level for all sinks. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(default_factory=ConsoleSink)
    otlp: OTLPSink = Field(default_factory=OTLPSink)
    file: FileSink = Field(default_factory=FileSink)
    logfire: LogfireSink = Field(default_factory=LogfireSink)

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in [self.console, self.file]:
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Create processors for enabled sinks and configure logfire."""
        import logfire
        from logfire import ConsoleOptions

        for sink in [self.console, self.otlp, self.file, self.logfire]:
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            sink._processor
            for sink in [self.otlp, self.file]
            if sink.enabled and sink._processor
        ]

        console = (
            ConsoleOptions(
                # logfire knows no level below trace
                min_log_level=(
                    "trace" if self.console.level == "spew"
                    else self.console.level
                ),
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=False,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=f"topbase-{run_name}",
            send_to_logfire=self.logfire.enabled,
            token=self.logfire.token if self.logfire.enabled else None,
            console=console,
            additional_span_processors=processors or None,
        )

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.log(
            level=LEVELS['trace'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def spew(self, msg: str, **kwargs):
        """Below trace: every git invocation and its exit code."""
        import logfire
        logfire.log(
            level=LEVELS['spew'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self.warn(msg, **kwargs)

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Span context manager around one operation.

        Usage:
            with logger.span("topbase {source} -> {target}", ...):
                ...
        """
        import logfire
        return logfire.span(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        import logfire
        logfire.log(level, msg, attributes=kwargs or None)

    def __getattr__(self, name):
        import logfire
        return getattr(logfire, name)


def setup_logger(
    log_root: Path,
    run_name: str,
    level: str = "info",
    console: ConsoleSink | None = None,
    otlp: OTLPSink | None = None,
    file: FileSink | None = None,
    logfire: LogfireSink | None = None,
) -> Logger:
    """Initialize the global logger singleton.

    Called by Config after it loads; tests call it directly.

    Args:
        log_root: Root directory for log files
        run_name: Name of this run (used in paths and service name)
        level: Default level for sinks that do not set their own
        console: Console sink config (or None for defaults)
        otlp: OTLP sink config (or None for defaults)
        file: File sink config (or None for defaults)
        logfire: Logfire sink config (or None for defaults)

    Returns:
        The initialized global Logger
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        otlp=otlp or OTLPSink(),
        file=file or FileSink(),
        logfire=logfire or LogfireSink(),
    )
    _current_logger.setup(log_root, run_name)
    return _current_logger
