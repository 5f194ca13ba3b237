"""Builders for motif atlases (TRANSFAC -> JSON -> SQLite)."""
