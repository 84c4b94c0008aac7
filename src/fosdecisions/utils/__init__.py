"""Utility helpers: settings, HTTP client, files and text."""
