# ==================================================
# ========  MODULE: decorators & timing utils  =====
# ==================================================
from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, TypeVar

from utils.logger import get_error_logger, get_logger

# Public API
__all__ = [
    "TimerManager",
    "log_exceptions",
    "timed_wrapper",
    "safe_timer",
]

F = TypeVar("F", bound=Callable[..., Any])

# ====[ Timing manager for cumulative profiling ]====
class TimerManager:
    """
    Track cumulative elapsed time and call count per named task.
    """
    def __init__(self) -> None:
        self.stats: Dict[str, Dict[str, float]] = {}

    def add(self, name: str, elapsed: float) -> None:
        """Add one elapsed time (seconds) under `name`."""
        info = self.stats.setdefault(name, {"total": 0.0, "count": 0})
        info["total"] = float(info["total"]) + float(elapsed)
        info["count"] = int(info["count"]) + 1

    def to_list(
        self,
        sort_by: Literal["total", "avg"] = "total",
        descending: bool = True,
        digits: int = 3,
    ) -> List[Tuple[str, int, float, float]]:
        """
        Return (name, count, total, avg) rows sorted by total or average time.
        """
        rows: List[Tuple[str, int, float, float]] = []
        for name, info in self.stats.items():
            count = int(info["count"])
            total = round(float(info["total"]), digits)
            avg = round((float(info["total"]) / count) if count > 0 else 0.0, digits)
            rows.append((name, count, total, avg))
        key_idx = 2 if sort_by == "total" else 3
        rows.sort(key=lambda x: x[key_idx], reverse=descending)
        return rows

    def to_log(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
        sort_by: Literal["total", "avg"] = "total",
    ) -> None:
        """Log one summary line per task."""
        logger = logger or get_logger()
        logger.log(level, "Execution Time Summary:")
        for name, count, total, avg in self.to_list(sort_by=sort_by):
            logger.log(level, f" | {name:<20} | {count:>3} calls | {total:>8.3f}s total | {avg:>8.3f}s avg")

# ====[ Exception logger decorator ]====
def log_exceptions(
    logger_name: str = "nd_combiner.errors",
    raise_exception: bool = True,
) -> Callable[[F], F]:
    """
    Log exceptions raised by the wrapped function to the error logger.

    Parameters
    ----------
    logger_name : str, default 'nd_combiner.errors'
        Name of the error logger.
    raise_exception : bool, default True
        Re-raise after logging. When False the wrapper returns None.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                get_error_logger(name=logger_name).error(f"Exception in '{func.__name__}': {e}", exc_info=True)
                if raise_exception:
                    raise
                return None
        return wrapper  # type: ignore[return-value]
    return decorator

# ====[ Shared timing and error handler core ]====
def timed_wrapper(
    func: F,
    label: str,
    log: bool = True,
    log_errors: bool = True,
    raise_exception: bool = True,
    timer: Optional[TimerManager] = None,
    info_logger: Optional[logging.Logger] = None,
    error_logger: Optional[logging.Logger] = None,
) -> F:
    """
    Wrap a function with timing and error logging.

    Parameters
    ----------
    func : Callable
        Function to wrap.
    label : str
        Label used in log lines and as the TimerManager key.
    log : bool, optional
        Log the elapsed time at INFO level. Default is True.
    log_errors : bool, optional
        Log exceptions to the error logger. Default is True.
    raise_exception : bool, optional
        Re-raise exceptions after logging. Default is True.
    timer : TimerManager, optional
        Also accumulate the elapsed time here.
    info_logger, error_logger : logging.Logger, optional
        Loggers to use; project defaults when omitted.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            if log_errors:
                (error_logger or get_error_logger()).error(f"Exception in '{label}': {e}", exc_info=True)
            if raise_exception:
                raise
            return None

        elapsed = time.perf_counter() - start
        if timer is not None:
            timer.add(label, elapsed)
        if log:
            (info_logger or get_logger()).info(f"Execution time for '{label}': {elapsed:.3f} seconds")
        return result

    return wrapper  # type: ignore[return-value]

# ====[ Combined safe timer ]====
def safe_timer(
    log: bool = True,
    log_errors: bool = True,
    raise_exception: bool = True,
    name: Optional[str] = None,
    timer: Optional[TimerManager] = None,
    info_logger: Optional[logging.Logger] = None,
    error_logger: Optional[logging.Logger] = None,
) -> Callable[[F], F]:
    """
    Decorator form of `timed_wrapper`: logger-based timing and error reporting.
    """
    def decorator(func: F) -> F:
        return timed_wrapper(
            func,
            label=name or func.__name__,
            log=log,
            log_errors=log_errors,
            raise_exception=raise_exception,
            timer=timer,
            info_logger=info_logger,
            error_logger=error_logger,
        )
    return decorator
