"""File-based agent definitions."""
