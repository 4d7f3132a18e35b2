"""
Closed-form densities for copula models.
"""

from .__version__ import __version__, __version_info__  # isort: skip

from . import copula, distributions, special
from .errors import DomainError, UnsupportedRegimeError
from .logging import reset_logger, setup_logger

# because logger setup takes place after importing the submodules, it only affects
# log messages emitted at runtime
setup_logger()
