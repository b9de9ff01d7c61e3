"""JSON schemas shipped as commitgate package data."""
