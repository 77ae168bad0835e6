"""Observability helpers for instrumenting engine calls."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from pydantic import BaseModel, ValidationError

from engine_app.logging_config import ensure_correlation_id, get_logger, log_event, redact_for_log

LOGGER = get_logger(__name__)
R = TypeVar("R")


def _preview_kwargs(kwargs: dict, max_keys: int = 6) -> dict:
    preview: dict = {}
    for idx, (key, value) in enumerate(kwargs.items()):
        if idx >= max_keys:
            preview["truncated"] = True
            break
        preview[key] = value
    return redact_for_log(preview)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def instrument_call(
    call_name: str,
    input_model: type[BaseModel] | None = None,
    on_validation_error: Callable[[ValidationError], Any] | None = None,
) -> Callable[[Callable[..., R]], Callable[..., R]]:
    """Wrap a function or coroutine function with structured logs and input validation.

    When ``input_model`` is given the keyword arguments are validated and
    replaced by the model's dump before the call.
    """

    def _validate(kwargs: Dict[str, Any], correlation_id: str) -> tuple[Dict[str, Any], ValidationError | None]:
        if not input_model:
            return kwargs, None
        try:
            return input_model.model_validate(kwargs).model_dump(exclude_unset=True), None
        except ValidationError as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "call_validation_failed",
                call=call_name,
                correlation_id=correlation_id,
                errors=exc.errors(include_url=False),
            )
            if on_validation_error is None:
                raise
            return kwargs, exc

    def _started(correlation_id: str, kwargs: Dict[str, Any]) -> None:
        log_event(
            LOGGER,
            logging.INFO,
            "call_started",
            call=call_name,
            correlation_id=correlation_id,
            kwargs=_preview_kwargs(kwargs),
        )

    def _failed(correlation_id: str, start: float) -> None:
        log_event(
            LOGGER,
            logging.ERROR,
            "call_failed",
            call=call_name,
            correlation_id=correlation_id,
            duration_ms=_elapsed_ms(start),
            exc_info=True,
        )

    def _completed(correlation_id: str, start: float) -> None:
        log_event(
            LOGGER,
            logging.INFO,
            "call_completed",
            call=call_name,
            correlation_id=correlation_id,
            duration_ms=_elapsed_ms(start),
        )

    def decorator(func: Callable[..., R]) -> Callable[..., R]:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                correlation_id = ensure_correlation_id()
                start = time.perf_counter()
                kwargs, error = _validate(kwargs, correlation_id)
                if error is not None and on_validation_error is not None:
                    return on_validation_error(error)
                _started(correlation_id, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    _failed(correlation_id, start)
                    raise
                _completed(correlation_id, start)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()
            kwargs, error = _validate(kwargs, correlation_id)
            if error is not None and on_validation_error is not None:
                return on_validation_error(error)
            _started(correlation_id, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception:
                _failed(correlation_id, start)
                raise
            _completed(correlation_id, start)
            return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
