"""Ephemeral session store. See :mod:`.store`."""

from .store import SessionStore, init_app, get_session_store

__all__ = ('SessionStore', 'init_app', 'get_session_store')
