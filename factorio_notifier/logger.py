import functools
import gzip
import inspect
import logging
import logging.handlers
import os
import shutil
import sys
from gzip import GzipFile
from pathlib import Path
from typing import Callable, ParamSpec, TypeVar

logger = logging.getLogger("factorio_notifier")
logger.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    "%(asctime)s %(levelname)s [%(module)s:%(funcName)s:%(lineno)d] %(message)s"
)

log_stream_handler = logging.StreamHandler(sys.stdout)
log_stream_handler.setFormatter(formatter)
log_stream_handler.setLevel(logging.INFO)
logger.addHandler(log_stream_handler)


def rotator(source, dest):
    with open(source, "rb") as f_in:
        with gzip.open(dest + ".gz", "wb") as f_out:
            assert isinstance(f_out, GzipFile)
            shutil.copyfileobj(f_in, f_out)
    os.remove(source)


def enable_file_logging(logs_dir: Path) -> logging.Handler:
    """Also write logs to a midnight-rotated, gzip-compressed file in logs_dir."""
    logs_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.TimedRotatingFileHandler(
        logs_dir / "notifier.log", when="midnight"
    )
    handler.setFormatter(formatter)
    handler.rotator = rotator
    logger.addHandler(handler)
    return handler


P = ParamSpec("P")
R = TypeVar("R")


def log_exception(
    prefix: str = "",
    default_return: R | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that logs and swallows any exception raised by the wrapped function.

    Works on both sync and async functions. The prefix may reference the
    function's parameters by name, e.g. ``"Delivering {message!r}"``.

    Args:
        prefix: Optional prefix to prepend to the error message
        default_return: Value returned instead of raising
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func)
        func_name = func.__qualname__

        def report(e: Exception, args: tuple, kwargs: dict) -> None:
            try:
                bound = sig.bind(*args, **kwargs)
                bound.apply_defaults()
                arguments = dict(bound.arguments)
            except TypeError as bind_error:
                logger.warning(
                    f"Failed to bind arguments for function {func_name}: {bind_error}",
                    stacklevel=3,
                )
                arguments = {}

            shown = ", ".join(
                f"{k}={v!r}" for k, v in arguments.items() if k not in ("self", "cls")
            )
            args_str = f"[{shown}] " if shown else ""

            prefix_str = ""
            if prefix:
                try:
                    prefix_str = f"{prefix.format_map(arguments)}: "
                except (KeyError, ValueError, IndexError) as format_error:
                    logger.warning(
                        f"Failed to format prefix '{prefix}' with arguments: {format_error}",
                        stacklevel=3,
                    )
                    prefix_str = f"{prefix}: "

            logger.error(
                f"{args_str}{prefix_str}{type(e).__name__}: {e}",
                exc_info=True,
                stacklevel=3,
            )

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    report(e, args, kwargs)
                    return default_return  # type: ignore[return-value]

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                report(e, args, kwargs)
                return default_return  # type: ignore[return-value]

        return sync_wrapper  # type: ignore[return-value]

    return decorator
