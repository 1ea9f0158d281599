"""Tests for :mod:`userauth.services.users`."""
