"""
Logging utilities
"""
import logging
import logging.config
import time
import functools
from pathlib import Path
from typing import Callable, Any, Optional
import yaml
from config.settings import settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]

_configured = False


def _resolve_config_path(config_path: Optional[str]) -> Path:
    path = Path(config_path or settings.log_config_path)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def setup_logging(config_path: Optional[str] = None, force: bool = False) -> None:
    """
    Initialise logging once per process

    The YAML file (dictConfig format) defines handlers and formatters; the
    level of the `mediation` logger always follows settings.log_level so it
    can be changed from the environment.

    Args:
        config_path: YAML file, relative paths resolve against the project root
        force: configure again even if already done
    """
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    config_file = _resolve_config_path(config_path)

    if config_file.exists():
        with open(config_file, 'r', encoding='utf-8') as f:
            logging.config.dictConfig(yaml.safe_load(f))
    else:
        logging.basicConfig(
            level=level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    logging.getLogger("mediation").setLevel(level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger

    Args:
        name: logger name, normally __name__

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_execution_time(
    logger: logging.Logger = None,
    operation: Optional[str] = None,
    slow_threshold: Optional[float] = None
):
    """
    Decorator that logs how long a call took

    Args:
        logger: logger instance (None uses the function's module logger)
        operation: label used in the log line (defaults to the function name)
        slow_threshold: seconds after which the timing is logged as a warning

    Example:
        @log_execution_time(operation="case load reconciliation", slow_threshold=5.0)
        def reconcile_case_loads(...): ...
    """
    def decorator(func: Callable) -> Callable:
        label = operation or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            log = logger or get_logger(func.__module__)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(f"{label} failed after {time.perf_counter() - started:.3f}s: {str(e)}")
                raise

            elapsed = time.perf_counter() - started
            if slow_threshold is not None and elapsed > slow_threshold:
                log.warning(f"{label} was slow: {elapsed:.3f}s (threshold {slow_threshold:.1f}s)")
            else:
                log.info(f"{label} finished in {elapsed:.3f}s")
            return result

        return wrapper
    return decorator
