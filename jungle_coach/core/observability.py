"""Observability helpers for the ingestion pipeline.

This module configures structlog once for the process and provides the
``trace_wrapper`` decorator used on adapter and pipeline entry points:
argument capture (with secret redaction), duration measurement and error
logging for both sync and async callables.
"""

import asyncio
import functools
import json
import logging
import re
import sys
import time
import traceback
from collections.abc import Callable
from typing import Any, TypeVar, cast

import structlog
from pydantic import BaseModel
from structlog.contextvars import bind_contextvars, unbind_contextvars

_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        *_SHARED_PROCESSORS,
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.dict_tracebacks,
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),  # type: ignore[list-item]
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

# Sensitive data redaction pattern
_SENSITIVE_KEY_RE = re.compile(r"(token|key|secret|password|authorization|auth)", re.IGNORECASE)


def configure_stdlib_json_logging(level: str = "INFO", file_target: str | None = None) -> None:
    """Route stdlib ``logging`` records through structlog's renderer.

    Modules log with ``logging.getLogger(__name__)``; this bridge gives those
    records the same JSON (or console) shape as native structlog events.
    """
    renderer: Any = (
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if file_target:
        handlers.append(logging.FileHandler(file_target, encoding="utf-8"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level.upper())

    # aiohttp access logs are noisy at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def _mask_scalar(value: Any) -> Any:
    if value is None:
        return None
    s = str(value)
    if len(s) <= 8:
        return "***"
    return f"{s[:4]}…{s[-3:]}"


def _redact_obj(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: (_mask_scalar(v) if _SENSITIVE_KEY_RE.search(str(k)) else _redact_obj(v)) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_redact_obj(i) for i in obj]
    return obj


def _serialize_value(value: Any, max_length: int = 1000) -> Any:
    """Safely serialize a value for logging, truncating long payloads."""
    try:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_unset=True)

        json_str = json.dumps(value, default=str)
        if len(json_str) > max_length:
            return json_str[:max_length] + "..."
        return json.loads(json_str)

    except (TypeError, ValueError):
        str_repr = str(value)
        if len(str_repr) > max_length:
            return str_repr[:max_length] + "..."
        return str_repr


def _safe_serialize_kv(key: str, value: Any, max_length: int) -> Any:
    ser = _serialize_value(value, max_length)
    if _SENSITIVE_KEY_RE.search(str(key)):
        return _mask_scalar(ser)
    return _redact_obj(ser)


def trace_wrapper(
    *,
    capture_result: bool = False,
    capture_args: bool = True,
    max_arg_length: int = 500,
    log_level: str = "DEBUG",
    add_metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Decorator for function tracing.

    Logs entry (with redacted arguments), success with duration, and failures
    with traceback. Exceptions are always re-raised. ``self`` is not captured
    for bound methods.

    Example:
        >>> @trace_wrapper(capture_result=True)
        ... async def get_match(match_id: str) -> dict:
        ...     return {"match_id": match_id}
    """

    def decorator(func: F) -> F:
        qualname = f"{func.__module__}.{func.__qualname__}"
        metadata = add_metadata or {}

        def _capture(args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[list[Any], dict[str, Any]]:
            if not capture_args:
                return [], {}
            positional = list(args)
            if positional and hasattr(positional[0], func.__name__):
                positional = positional[1:]
            return (
                [_redact_obj(_serialize_value(a, max_arg_length)) for a in positional],
                {k: _safe_serialize_kv(k, v, max_arg_length) for k, v in kwargs.items()},
            )

        def _on_error(execution_id: str, started: float, exc: Exception, args: Any, kwargs: Any) -> None:
            logger.error(
                f"Error in function: {qualname}",
                execution_id=execution_id,
                duration_ms=(time.perf_counter() - started) * 1000,
                error_type=type(exc).__name__,
                error_message=str(exc),
                traceback=traceback.format_exc(),
                args=args,
                kwargs=kwargs,
                **metadata,
            )

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                execution_id = f"{qualname}_{int(time.time() * 1000000)}"
                cap_args, cap_kwargs = _capture(args, kwargs)
                bind_contextvars(execution_id=execution_id)
                logger.log(
                    logging.getLevelName(log_level.upper()),
                    f"Executing async function: {qualname}",
                    args=cap_args,
                    kwargs=cap_kwargs,
                    **metadata,
                )
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                    logger.log(
                        logging.getLevelName(log_level.upper()),
                        f"Successfully executed: {qualname}",
                        duration_ms=(time.perf_counter() - started) * 1000,
                        result=_redact_obj(_serialize_value(result, max_arg_length)) if capture_result else None,
                        **metadata,
                    )
                    return result
                except Exception as exc:
                    _on_error(execution_id, started, exc, cap_args, cap_kwargs)
                    raise
                finally:
                    unbind_contextvars("execution_id")

            return cast(F, async_wrapper)

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            execution_id = f"{qualname}_{int(time.time() * 1000000)}"
            cap_args, cap_kwargs = _capture(args, kwargs)
            bind_contextvars(execution_id=execution_id)
            logger.log(
                logging.getLevelName(log_level.upper()),
                f"Executing function: {qualname}",
                args=cap_args,
                kwargs=cap_kwargs,
                **metadata,
            )
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                logger.log(
                    logging.getLevelName(log_level.upper()),
                    f"Successfully executed: {qualname}",
                    duration_ms=(time.perf_counter() - started) * 1000,
                    result=_redact_obj(_serialize_value(result, max_arg_length)) if capture_result else None,
                    **metadata,
                )
                return result
            except Exception as exc:
                _on_error(execution_id, started, exc, cap_args, cap_kwargs)
                raise
            finally:
                unbind_contextvars("execution_id")

        return cast(F, sync_wrapper)

    return decorator


def trace_critical(func: F) -> F:
    """Decorator for pipeline entry points (scrape, sync, backfill)."""
    return trace_wrapper(capture_result=False, capture_args=True, log_level="INFO")(func)


def trace_adapter(func: F) -> F:
    """Decorator specifically for adapter layer functions."""
    return trace_wrapper(
        capture_result=False,
        capture_args=True,
        log_level="DEBUG",
        add_metadata={"layer": "adapter"},
    )(func)
