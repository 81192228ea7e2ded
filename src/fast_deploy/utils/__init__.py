"""Shared helpers for fast-deploy."""
