"""Domain layer: entities, exceptions, repository interfaces and services."""
