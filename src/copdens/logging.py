"""
Logging utilities.
"""

import logging
from pathlib import Path


def setup_logger() -> None:
    """
    Sets up a basic ``StreamHandler`` that prints log messages to the terminal.
    The default log level of the ``StreamHandler`` is set to "info".

    The global log level for copdens can be adjusted like this::

        import logging
        logger = logging.getLogger("copdens")
        logger.level = logging.WARNING

    This will set the log level to "warning".
    """

    logger = logging.getLogger("copdens")

    # messages below this level are never emitted by the library logger
    logger.setLevel(logging.INFO)

    # no duplicates through the root logger
    logger.propagate = False

    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)


def reset_logger() -> None:
    """
    Resets the copdens logger.

    Specifically, this function...

    - ... resets the level of the copdens logger to ``logging.NOTSET``.
    - ... sets ``propagate=True`` for the copdens logger.
    - ... removes *all* handlers from the copdens logger.

    This function is useful if you want to set up a custom logging configuration,
    for example inside a host application that evaluates the likelihoods.
    """

    logger = logging.getLogger("copdens")
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

    for handler in list(logger.handlers):
        logger.removeHandler(handler)


def add_file_handler(
    path: str | Path,
    level: str,
    logger: str = "copdens",
    fmt: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
) -> None:
    """
    Adds a file handler to a logger.

    Parameters
    ----------
    path
        Absolute path to the log file. If it does not exist, it will be created.
        If any parent directory does not exist, it will be created as well.
    level
        The log level of the messages to write to the file. Can be ``"debug"``,
        ``"info"``, ``"warning"``, ``"error"`` or ``"critical"``. The file will
        contain all messages from the specified level upwards.
    logger
        The name of the logger to configure the file handler for. For the copula
        likelihood only, the argument should be specified as ``"copdens.copula"``.
    fmt
        Formatting string. See the documentation of the :class:`logging.Formatter`.

    Examples
    --------
    A file handler that catches only log messages from :mod:`copdens.copula` of
    level "warning" or higher::

        import copdens

        copdens.logging.add_file_handler(
            path="/tmp/copula_warnings.log",
            level="warning",
            logger="copdens.copula",
        )
    """

    path = Path(path)

    if not path.is_absolute():
        raise ValueError("Provided path for logging file handler must be absolute")

    path.parent.mkdir(parents=True, exist_ok=True)

    _logger = logging.getLogger(logger)
    handler = logging.FileHandler(path)

    handler.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(fmt, "%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    _logger.addHandler(handler)
