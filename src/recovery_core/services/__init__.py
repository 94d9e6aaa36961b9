"""Recovery core services."""
