"""Tests for :mod:`userauth.services`."""
