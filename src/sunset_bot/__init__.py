"""Slack bot for managing a BeforeSunset to-do list."""

__version__ = "0.1.0"
