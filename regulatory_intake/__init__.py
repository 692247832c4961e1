"""Regulatory requirement intake — collects jurisdiction compliance data step by step."""

__version__ = "0.1.0"
