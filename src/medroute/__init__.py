"""Fastest-route lookup for emergency medical facilities."""

__version__ = "0.1.0"
