"""Qt integration helpers."""
