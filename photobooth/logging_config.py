"""Logging setup for the Face Photobooth."""
import logging
import sys

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ('PIL', 'absl', 'matplotlib')


def setup_logging(level="INFO", fmt=DEFAULT_FORMAT, stream=None):
    """Configure the root logger once; later calls only adjust the level.

    Args:
        level: Logging level name or number
        fmt: Log record format
        stream: Output stream, stderr by default

    Returns:
        logging.Logger: the package logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if not any(getattr(h, '_photobooth', False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        handler._photobooth = True
        root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger('photobooth')
