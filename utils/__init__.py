"""Shared helpers: time labels, datetimes, logging and exceptions."""
