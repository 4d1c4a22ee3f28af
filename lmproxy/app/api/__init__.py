"""API routers for LMProxy."""
