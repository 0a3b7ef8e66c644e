from .logging import LogMessage, RuntimeLogger
from .redaction import MASK, RedactingLogSink, SensitiveValueMask
from .sinks import FanoutLogSink, JsonlLogSink, TextLogSink

__all__ = [
    "MASK",
    "FanoutLogSink",
    "JsonlLogSink",
    "LogMessage",
    "RedactingLogSink",
    "RuntimeLogger",
    "SensitiveValueMask",
    "TextLogSink",
]
