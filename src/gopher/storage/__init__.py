"""Persistent state and log capture for Gopher sessions."""

from .log_sink import LogSink, resume_delimiter
from .state import StateStore

__all__ = ["LogSink", "StateStore", "resume_delimiter"]
