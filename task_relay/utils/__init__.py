"""Shared utilities: retries, developer alerts and logging setup."""
