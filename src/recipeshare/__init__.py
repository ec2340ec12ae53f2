"""Recipe sharing backend.

Bulk ingestion into PostgreSQL, aggregate maintenance for recipe ratings,
and deterministic paginated queries over recipes, reviews and feeds.
"""

__version__ = "0.1.0"
