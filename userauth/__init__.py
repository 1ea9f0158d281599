"""
Authentication and session lifecycle for API-driven services.

Users register with a username, e-mail address and password, and verify the
address with a single-use code sent by e-mail. Logging in yields an opaque
session token that expires unless it is refreshed; refreshing replaces it.

See :class:`userauth.auth.Authenticator` for the operations, and
:mod:`userauth.routes` for the HTTP API.
"""
