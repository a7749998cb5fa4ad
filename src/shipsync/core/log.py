from __future__ import annotations

"""
shipsync.core.log
=================

Structured logging for the sync layer.

- Silent by default: the ``shipsync`` logger only carries a NullHandler until an
  application (or the test suite) calls `enable_stdout_logging` / `configure_from_env`.
- `get_logger()` returns an adapter that accepts arbitrary keyword fields:
      log.info("replay.sent", event="replay.sent", record_id=rid, method="post")
- Context fields (pass id, record id, ...) live in a contextvar and are merged into
  every record emitted inside `log_context(...)`.
"""

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar, Final

__all__ = [
    "bind_context",
    "configure_from_env",
    "disable_stdout_logging",
    "enable_stdout_logging",
    "get_logger",
    "log_context",
    "swallow",
    "warn_once",
]

# ---------- Context ----------

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar("shipsync_log_ctx", default=None)

# Context keys surfaced by the human formatter, in display order.
_HUMAN_CTX_KEYS: Final[tuple[str, ...]] = ("role", "pass_id", "record_id", "method", "url")


def _ctx_copy() -> dict[str, Any]:
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


def bind_context(**fields: Any) -> None:
    """Merge fields into the current structured log context (None values are ignored)."""
    ctx = _ctx_copy()
    ctx.update({k: v for k, v in fields.items() if v is not None})
    _log_context.set(ctx)


@contextmanager
def log_context(**fields: Any):
    """Temporarily add fields to the structured log context."""
    token = _log_context.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------- Formatters ----------

# Attributes every LogRecord carries; anything else on a record came in through `extra`.
_STD_ATTRS: Final[frozenset[str]] = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line with context fields and keyword extras inlined."""

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds")
        out: dict[str, Any] = {
            "ts": ts.replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        out.update(_ctx_copy())
        out.update({k: v for k, v in vars(record).items() if k not in _STD_ATTRS and k not in out})

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            out["exc"] = {"type": type(exc).__name__, "message": str(exc)}
            if self.include_stack:
                out["exc"]["stack"] = self.formatException(record.exc_info)

        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=str)


class HumanFormatter(logging.Formatter):
    """Compact single-line formatter for local debugging."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        s = f"{self.formatTime(record)} {record.levelname:<5} {record.name}: {record.getMessage()}"
        ctx = _log_context.get()
        if ctx:
            compact = [f"{k}={ctx[k]}" for k in _HUMAN_CTX_KEYS if ctx.get(k) is not None]
            if compact:
                s += f"  [{', '.join(compact)}]"
        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)
        return s


# ---------- Filters / adapter ----------


class ContextFilter(logging.Filter):
    """Copy contextvars onto the LogRecord so handlers can route on them."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _log_context.get()
        if ctx:
            for k, v in ctx.items():
                record.__dict__.setdefault(k, v)
        return True


class _KwExtraAdapter(logging.LoggerAdapter):
    """Accept ``log.info("msg", event=..., record_id=...)``: loose kwargs become ``extra``."""

    _passthrough: ClassVar[frozenset[str]] = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

    def process(self, msg, kwargs):
        extra = dict(kwargs.pop("extra", None) or {})
        for k in [k for k in kwargs if k not in self._passthrough]:
            # LogRecord attributes cannot be overwritten through extra
            extra.setdefault(f"field_{k}" if k in _STD_ATTRS else k, kwargs.pop(k))
        kwargs["extra"] = extra
        return msg, kwargs


def _adapt(logger: logging.Logger | logging.LoggerAdapter) -> logging.LoggerAdapter:
    return logger if isinstance(logger, logging.LoggerAdapter) else _KwExtraAdapter(logger, {})


_warned: set[str] = set()


def warn_once(logger: logging.Logger | logging.LoggerAdapter, code: str, msg: str, **fields: Any) -> None:
    """Warn the first time `code` is seen in this process, stay quiet afterwards."""
    if code in _warned:
        return
    _warned.add(code)
    _adapt(logger).warning(msg, code=code, **fields)


# ---------- Handlers ----------

_ROOT = "shipsync"
_HANDLER_NAME = "_shipsync_stream"


def _level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level {level!r}")
    return value


def _root() -> logging.Logger:
    lg = logging.getLogger(_ROOT)
    if not lg.handlers:
        # silent library default until an entrypoint enables output
        lg.setLevel(logging.DEBUG)
        lg.addHandler(logging.NullHandler())
    return lg


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """Keyword-friendly logger under the ``shipsync`` namespace."""
    lg = _root()
    return _KwExtraAdapter(lg.getChild(name) if name else lg, {})


def enable_stdout_logging(*, level: int | str = logging.DEBUG, pretty: bool = False, include_stack: bool = False) -> None:
    """Attach a single stdout handler: JSON lines by default, one-line human format with ``pretty``."""
    lg = _root()
    disable_stdout_logging()
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(_level(level))
    handler.addFilter(ContextFilter())
    handler.setFormatter(HumanFormatter() if pretty else JsonFormatter(include_stack=include_stack))
    lg.addHandler(handler)


def disable_stdout_logging() -> None:
    lg = logging.getLogger(_ROOT)
    for h in [h for h in lg.handlers if h.get_name() == _HANDLER_NAME]:
        lg.removeHandler(h)


def configure_from_env() -> None:
    """
    Apply ``SHIPSYNC_LOG_*`` settings; call once from the application entrypoint.

      SHIPSYNC_LOG_LEVEL   logger level (default INFO)
      SHIPSYNC_LOG_STDOUT  1/true: write logs to stdout
      SHIPSYNC_LOG_PRETTY  1/true: human formatter instead of JSON
      SHIPSYNC_LOG_STACK   1/true: include stack traces in JSON errors
    """
    level = _level(os.getenv("SHIPSYNC_LOG_LEVEL", "INFO"))
    _root().setLevel(level)
    if _env_flag("SHIPSYNC_LOG_STDOUT"):
        enable_stdout_logging(
            level=level,
            pretty=_env_flag("SHIPSYNC_LOG_PRETTY"),
            include_stack=_env_flag("SHIPSYNC_LOG_STACK"),
        )
    else:
        disable_stdout_logging()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@contextmanager
def swallow(
    *,
    code: str,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
    msg: str = "suppressed exception",
    level: int = logging.DEBUG,
    reraise: bool = False,
    expected: bool = True,
):
    """
    Logged replacement for ``try/except: pass``:

        with swallow(logger=log, code="context.store.close", msg="store close failed"):
            await store.close()
    """
    try:
        yield
    except Exception as e:
        _adapt(logger or get_logger("swallow")).log(level, msg, exc_info=e, code=code, expected=expected)
        if reraise:
            raise
