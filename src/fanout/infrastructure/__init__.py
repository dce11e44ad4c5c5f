"""Infrastructure layer: pool, config, sources, mappers, invokers, logging."""
