"""Observation hooks for simulation runs."""

from .trace import EventTrace, TraceRecord

__all__ = ["EventTrace", "TraceRecord"]
