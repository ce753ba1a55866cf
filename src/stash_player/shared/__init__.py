"""Shared enums and exceptions."""
