"""Utility modules for scenestitch."""
