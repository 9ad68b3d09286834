"""Realtime notification client for the portal."""
