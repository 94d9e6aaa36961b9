"""Recovery domain definitions."""
