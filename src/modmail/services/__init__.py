"""Relay services: identity store, router, per-conversation queue and command handler."""
