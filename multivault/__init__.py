"""Multi-collateral debt-position accounting engine."""

__version__ = "0.1.0"
