"""Environment-specific settings overrides."""
