"""Metric mapping engine.

Turns decoded agent submissions into :class:`~ddhouse.domain.models.MetricRecord`
objects ready for the time-series sink.
"""
