"""Notification synchronization engine for AT Protocol clients."""

__version__ = "0.1.0"
