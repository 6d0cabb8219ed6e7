"""Test helpers for site-drive tests."""

from .fake_clock import FakeClock

__all__ = ['FakeClock']
