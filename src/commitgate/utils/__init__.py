"""Shared helpers for commitgate."""
