"""HTTP boundary."""
