"""Event sinks and notification channels."""
from .event_log import EventLog, LoggingEventSink, describe_event
from .telegram import TelegramNotifier

__all__ = ["EventLog", "LoggingEventSink", "TelegramNotifier", "describe_event"]
