"""Small helpers shared across the banner editor."""
