"""
strategies
=====================

This package contains the algorithms the simulator can run.

Classes
-------
* :class:`strategies.base.BaseAlgorithm` – Base class with the callback surface.
* :class:`strategies.index_option_short_call_otm_expiry.IndexOptionShortCallOTMExpiryRegressionAlgorithm` –
  Short OTM SPX call held to expiry.
"""

from .base import BaseAlgorithm  # noqa: F401
from .index_option_short_call_otm_expiry import IndexOptionShortCallOTMExpiryRegressionAlgorithm  # noqa: F401

ALGORITHMS = {
    "index_option_short_call_otm_expiry": IndexOptionShortCallOTMExpiryRegressionAlgorithm,
}

__all__ = [
    "ALGORITHMS",
    "BaseAlgorithm",
    "IndexOptionShortCallOTMExpiryRegressionAlgorithm",
]
