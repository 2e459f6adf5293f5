"""Lokkatha: storytelling platform backend."""
