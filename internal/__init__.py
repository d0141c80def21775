from internal.logging import AsyncFileLogger, LogLevel, StructuredLogger, get_logger, parse_level

__all__ = [
    "AsyncFileLogger",
    "LogLevel",
    "StructuredLogger",
    "get_logger",
    "parse_level",
]
