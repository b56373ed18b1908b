"""
SQLite Database Layer for FlowSync
==================================

Provides the connection handling and models for tasks, calendar events,
appointments and runtime configuration.
"""

__version__ = "1.0.0"
__all__ = ["models"]
