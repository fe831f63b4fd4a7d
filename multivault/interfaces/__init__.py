"""Protocol interfaces for the engine's external collaborators."""
from .event_sink import EventSink
from .notifier import Notifier
from .price_source import PriceSource
from .token import MintableToken, Token

__all__ = ["EventSink", "MintableToken", "Notifier", "PriceSource", "Token"]
