"""Core services: identity, aggregates, import and the per-resource APIs."""
