"""Sink adapters."""

from .influxdb import InfluxDBForwarder

__all__ = ["InfluxDBForwarder"]
