"""Cross-cutting building blocks: configuration, errors, lifespan, middleware."""
