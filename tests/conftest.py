import logging
from collections.abc import Generator
from contextlib import contextmanager

import jax

# the closed-form reference values are compared at double precision
jax.config.update("jax_enable_x64", True)

import pytest  # noqa: E402
from _pytest.logging import LogCaptureHandler  # noqa: E402


@contextmanager
def local_caplog_fn(
    level: int = logging.INFO, name: str = "copdens"
) -> Generator[LogCaptureHandler]:
    """
    Context manager that captures records from non-propagating loggers.

    After the end of the ``with`` statement, the log level is restored to its original
    value. Code adapted from `this GitHub comment <GH_>`_.

    .. _GH: https://github.com/pytest-dev/pytest/issues/3697#issuecomment-790925527

    Parameters
    ----------
    level
        The log level.
    name
        The name of the logger to update.
    """

    logger = logging.getLogger(name)

    old_level = logger.level
    logger.setLevel(level)

    handler = LogCaptureHandler()
    logger.addHandler(handler)

    try:
        yield handler
    finally:
        logger.setLevel(old_level)
        logger.removeHandler(handler)


@pytest.fixture
def local_caplog():
    """
    Fixture that yields a context manager for capturing records from non-propagating
    loggers.

    Examples
    --------
    Usage example::

        def test_empty_partition(local_caplog):
            with local_caplog() as caplog:
                mixed_cop(None, None, None, None, mu, [], L, lb, ub, [0, 0, 0])
                assert caplog.records[0].levelname == "WARNING"
    """

    yield local_caplog_fn
