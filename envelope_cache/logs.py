"""
Structured logging module for the envelope cache.

This module provides structured logging with component naming and execution timing.
It supports colored output for console logs and, when a log directory is
configured, JSON output for rotating file logs.
"""

import logging
import os
import time
import contextlib
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Optional, Protocol

import structlog

# Global flag to prevent multiple initializations
_logging_configured = False

# ANSI color codes for console output
COLORS = {
    'blue': '\033[34;1m',      # Blue bold for component paths
    'green': '\033[32m',       # Green for success
    'red': '\033[31m',         # Red for failures and errors
    'magenta': '\033[35m',     # Magenta for durations/latency
    'gray': '\033[2;37m',      # Dim gray for keys and identifiers
    'yellow': '\033[33m',      # Yellow for warnings
    'reset': '\033[0m',        # Reset color
}

ICONS = {
    'success': '✓',
    'fail': '✗',
    'warning': '!'
}


def add_component_context(_, __, event_dict):
    """
    Add component context to log events.

    Creates a formatted component path like [Component > SubComponent]
    based on component and subcomponent fields.
    """
    if 'component' in event_dict and 'subcomponent' in event_dict:
        event_dict['component_path'] = f"[{event_dict['component']} > {event_dict['subcomponent']}]"
    elif 'component' in event_dict:
        event_dict['component_path'] = f"[{event_dict['component']}]"
    return event_dict


def colorize_console_output(_, __, event_dict):
    """
    Format log events with colors for console output.

    Works as the final processor of a ProcessorFormatter and returns a string.
    """
    event_data = event_dict.copy()

    timestamp = event_data.get('timestamp', '')
    level = event_data.get('level', '').upper()
    event = event_data.get('event', '')

    output_parts = [f"{timestamp} [{level}]"]

    if 'component_path' in event_data:
        output_parts.append(f"{COLORS['blue']}{event_data['component_path']}{COLORS['reset']}")

    output_parts.append(str(event))

    if 'execution_time' in event_data:
        output_parts.append(f"{COLORS['magenta']}(took {event_data['execution_time']}){COLORS['reset']}")

    skip_keys = {
        'timestamp', 'level', 'event', 'component', 'subcomponent',
        'component_path', 'execution_time', 'exc_info', 'exception',
    }

    for key, value in event_data.items():
        if key in skip_keys:
            continue

        if key == 'status' and value == 'success':
            output_parts.append(f"{key}={COLORS['green']}{ICONS['success']} {value}{COLORS['reset']}")
        elif key == 'status' and value in ('failed', 'error'):
            output_parts.append(f"{key}={COLORS['red']}{ICONS['fail']} {value}{COLORS['reset']}")
        elif key == 'error':
            output_parts.append(f"{key}={COLORS['red']}{value}{COLORS['reset']}")
        elif key == 'warning':
            output_parts.append(f"{key}={COLORS['yellow']}{ICONS['warning']} {value}{COLORS['reset']}")
        elif key in ('key', 'store_key') or key.endswith('_id'):
            output_parts.append(f"{key}={COLORS['gray']}{value}{COLORS['reset']}")
        else:
            output_parts.append(f"{key}={value}")

    rendered = " ".join(output_parts)
    if 'exception' in event_data:
        rendered = f"{rendered}\n{event_data['exception']}"
    return rendered


def _configure_logging_once(level: Optional[str] = None, log_dir: Optional[str] = None):
    """
    Configure logging only once to prevent duplicate handlers.

    Uses ProcessorFormatter for dual output:
    - Console: Colored, human-readable format
    - File: Pure JSON format, only when a log directory is configured
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None or log_dir is None:
        from envelope_cache.config import get_settings

        settings = get_settings()
        level = level or settings.log_level
        log_dir = log_dir or settings.log_dir

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_component_context,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_component_context,
    ]

    package_logger = logging.getLogger("envelope_cache")
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=colorize_console_output,
            foreign_pre_chain=pre_chain,
        )
    )
    package_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"envelope_cache_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        package_logger.addHandler(file_handler)

    # redis-py logs reconnect noise at debug/info level
    logging.getLogger("redis").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(log_name: str = __name__) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger.

    Loggers live under the ``envelope_cache`` namespace so the handlers
    installed here never touch the host application's root logger.

    Args:
        log_name: Logger name

    Returns:
        Configured structlog logger
    """
    _configure_logging_once()

    if not log_name.startswith("envelope_cache"):
        log_name = f"envelope_cache.{log_name}"

    return structlog.wrap_logger(logging.getLogger(log_name))


def get_component_logger(component: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger pre-configured with a component name.

    Args:
        component: Component name to bind to the logger

    Returns:
        Logger with component name bound
    """
    logger = get_logger(component)
    return logger.bind(component=component)


@contextlib.contextmanager
def log_execution_time(logger, component: str, operation: str):
    """
    Context manager to log execution time of a block of code.

    Args:
        logger: Logger instance to use
        component: Component name
        operation: Operation name (subcomponent)

    Example:
        with log_execution_time(logger, "Cache", "Start"):
            await provider.start()
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        execution_time = time.perf_counter() - start_time
        logger.info(
            "Operation completed",
            component=component,
            subcomponent=operation,
            execution_time=f"{execution_time:.3f}s",
        )


# ------------------------------------------------------------
# Timing hooks
# ------------------------------------------------------------


class TimingCollector(Protocol):
    """Receives timing events from instrumented code paths."""

    def record(self, operation: str, duration: float, **fields: Any) -> None: ...


class LoggingTimingCollector:
    """TimingCollector that writes each event as a debug log line."""

    def __init__(self, component: str = "Cache"):
        self.component = component
        self.logger = get_component_logger(component)

    def record(self, operation: str, duration: float, **fields: Any) -> None:
        self.logger.debug(
            f"{operation} timed",
            subcomponent="Timing",
            operation=operation,
            execution_time=f"{duration * 1000:.3f}ms",
            **fields,
        )
