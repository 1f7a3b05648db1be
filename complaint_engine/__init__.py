"""Complaint lifecycle, SLA and classification engine."""

__version__ = "1.0.0"
