"""Logging configuration for freshrss-filter."""
import logging

# Third-party loggers that are too chatty at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """Configure the root logger with a console handler.

    Args:
        verbosity: 0 logs INFO and above, 1 or more logs DEBUG.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbosity > 0 else logging.INFO)

    # Remove existing handlers (avoid duplicates)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s %(threadName)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Third-party debug output only with -vv
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbosity > 1 else logging.WARNING)

    return root_logger
