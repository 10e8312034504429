"""Protocols for external collaborators."""
