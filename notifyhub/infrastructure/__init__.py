"""Infrastructure adapters: persistence, providers and background tasks."""
