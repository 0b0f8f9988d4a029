"""Persistence for dashboard configuration and user roles."""
