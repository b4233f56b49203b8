"""Infrastructure layer - persistence, provider connectors, auth and CLI."""
