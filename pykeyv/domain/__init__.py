"""Domain layer: value objects, enums, store contracts."""
