"""Unified payment gateway abstraction for Django projects."""

__version__ = "1.0.0"
