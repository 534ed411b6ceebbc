"""Ports and adapters for session persistence."""
