"""Wrappers around the external programs smoothdown drives."""
