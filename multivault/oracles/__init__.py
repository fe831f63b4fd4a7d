"""Price source implementations."""
from .pyth import PythPriceSource
from .static import StaticPriceSource

__all__ = ["PythPriceSource", "StaticPriceSource"]
