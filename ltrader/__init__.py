"""Event-driven framework for futures trading strategies, with live and back-test engines."""

__version__ = "0.1.0"