"""Canna log client core."""
