"""
Helpers for logging and reporting upstream failures without letting a
misbehaving exception object break the request that is reporting it.
"""

import logging


def _safe_str(obj) -> str:
    """
    Convert an object to string, falling back to ``repr`` and then to the type name.

    Args:
        obj: The object to convert

    Returns:
        A string representation of the object
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def format_exception_message(exception: Exception) -> str:
    """
    Describe an exception for a client-facing error payload.

    httpx transport errors are frequently raised without a message (a bare
    ``ConnectTimeout()``), so the exception type is used when the message is
    empty.

    Args:
        exception: The exception to describe

    Returns:
        A non-empty description
    """
    if exception is None:
        return "None"
    message = _safe_str(exception)
    if message:
        return message
    return type(exception).__name__


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its type, message and traceback.

    Never raises: a failure to log must not turn into a failed proxy response.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        message = (
            f"{prefix} {type(exception).__name__}: {format_exception_message(exception)}"
        )
        logger.log(level, message, exc_info=exception)
    except Exception:
        try:
            logger.log(level, f"{prefix} Exception (logging failed)")
        except Exception:
            pass
