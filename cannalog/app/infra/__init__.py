"""Infrastructure helpers shared across the app."""
