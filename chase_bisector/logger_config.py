import logging
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logger(
    logger,
    console_level=logging.WARNING,
    file_level=logging.DEBUG,
    file=None,
    format=None,
    datefmt=None,
):
    """Attach console and (optionally) file handlers to an existing logger."""
    if format is None:
        format = DEFAULT_FORMAT
    formatter = logging.Formatter(format, datefmt=datefmt)

    console_log = logging.StreamHandler()
    console_log.setLevel(console_level)
    console_log.setFormatter(formatter)
    logger.addHandler(console_log)

    if file is not None:
        Path(file).parent.mkdir(parents=True, exist_ok=True)
        try:
            file_log = logging.FileHandler(str(file))
        except (IsADirectoryError, PermissionError) as err:
            raise RuntimeError(f"Error creating log file at '{str(file)}'") from err
        file_log.setLevel(file_level)
        file_log.setFormatter(formatter)
        logger.addHandler(file_log)
        logger.debug(f"Initialized file log output to {str(file)}.")

    return logger


def setup_logger(
    name=None,
    console_level=logging.WARNING,
    file_level=logging.INFO,
    file=None,
    format=None,
    datefmt="%Y-%m-%d %H:%M:%S",
):
    """
    Create the package logger and route it to the console (and a file).

    Module loggers are children of ``chase_bisector`` so configuring the
    package logger once covers the extractor, the aggregator and the pipeline.
    Calling this twice replaces the handlers instead of duplicating them.
    """
    if name is None:
        name = "chase_bisector"
    logger = logging.getLogger(name)
    logger.setLevel(min(console_level, file_level) if file is not None else console_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    return configure_logger(logger, console_level, file_level, file, format, datefmt)
