"""Appenders (output sinks) and layouts."""

from hierlog.appenders.base import Appender, ConsoleAppender, FileAppender
from hierlog.appenders.daily import DailyFileAppender
from hierlog.appenders.layouts import Layout, PatternLayout, SimpleLayout

__all__ = [
    "Appender",
    "ConsoleAppender",
    "DailyFileAppender",
    "FileAppender",
    "Layout",
    "PatternLayout",
    "SimpleLayout",
]
