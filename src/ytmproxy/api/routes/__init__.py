"""API route modules, mounted under /api."""
