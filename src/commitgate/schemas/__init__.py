"""Schema validation for commitgate option files."""
