"""Domain layer: entities, errors and outbound ports."""
