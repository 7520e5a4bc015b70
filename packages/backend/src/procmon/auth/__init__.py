"""Authentication and authorization.

Learn: Users log in with username/password and get a JWT access token.
The token carries the user's role; route handlers gate privileged
actions (retrying a process) with require_role().

Users live in an in-memory directory seeded with demo accounts;
there is no user database.
"""
