"""Discrete agent events: extraction and the durable append-only writer."""

from .extractor import extract_events
from .writer import EventWriter

__all__ = ["EventWriter", "extract_events"]
