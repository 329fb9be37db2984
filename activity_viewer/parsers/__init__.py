"""Parsers for activity log content."""
