"""Reusable calculation libraries."""
