"""
Integration tests for Bookkeeper.

These tests run the services against an in-memory SQLite database.
"""
