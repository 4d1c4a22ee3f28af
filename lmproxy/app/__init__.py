"""LMProxy application package."""
