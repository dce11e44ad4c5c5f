"""Adapters: user-facing entry points."""
