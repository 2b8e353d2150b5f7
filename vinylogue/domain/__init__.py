"""Domain layer: entities, chart logic, transforms and interfaces."""
