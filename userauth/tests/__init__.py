"""Tests for :mod:`userauth`."""
