"""Shared parsing helpers."""
