"""Test fixtures for site-drive tests."""
