"""File-based template and document index."""
