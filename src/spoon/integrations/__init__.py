"""Hosting-platform integrations."""
