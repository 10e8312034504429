"""Entrypoints: HTTP API and CLI."""
