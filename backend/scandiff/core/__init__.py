"""Shared infrastructure: logging and the error taxonomy."""
