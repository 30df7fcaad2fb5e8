"""Business logic for passwordless login and sessions."""
