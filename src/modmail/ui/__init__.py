"""Operator-facing interactive console."""
