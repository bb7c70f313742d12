"""Shared helpers: fonts and logging setup."""
