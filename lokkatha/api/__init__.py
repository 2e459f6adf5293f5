"""API layer: configuration, data access and authentication."""
