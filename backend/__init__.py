"""
Hot Potato PR Dashboard - API backend.

FastAPI application exposing the /api endpoints consumed by the React
dashboard: PR listing, label toggles, assignee/reviewer changes,
configuration, authentication and role management.
"""
