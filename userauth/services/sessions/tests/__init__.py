"""Tests for :mod:`userauth.services.sessions`."""
