"""Verifiable safety score oracle for lending protocols."""

__version__ = "0.1.0"
