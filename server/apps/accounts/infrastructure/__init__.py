"""Infrastructure layer for accounts app.

Holds the identity provider that issues one-time codes and sessions.
"""
