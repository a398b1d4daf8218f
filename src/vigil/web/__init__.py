"""Vigil web front end."""
