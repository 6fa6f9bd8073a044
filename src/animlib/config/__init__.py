"""Configuration constants and loaders."""
