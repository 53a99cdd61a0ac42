"""Ocular health risk indicators from a single still image."""
