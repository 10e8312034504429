"""HTTP command gateway."""
