"""Artverse - artist galleries with pluggable image storage."""
