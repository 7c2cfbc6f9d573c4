"""Authentication: credentials, server-side sessions, request dependencies.

Users log in with email/password and receive an opaque session token in
a cookie. The token resolves to a UserId, which every service uses for
row-level scoping.
"""
