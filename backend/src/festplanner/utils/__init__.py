"""Small parsing and date helpers."""
