"""Integration tests for site-drive.

These tests run the caching connector on top of a snapshot-backed memory
backend with real files in temporary directories. Every change is written to
the snapshot and read back by a freshly opened drive.

Use pytest marks to run them on their own:
    pytest tests/integration -m integration
"""
