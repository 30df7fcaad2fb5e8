"""Shared fixtures for accounts app tests."""

import re

import pytest
from django.core import mail


@pytest.fixture
def read_code():
    """Read the one-time code from the last sent email.

    Returns:
        Function returning the code string.
    """
    def _read() -> str:
        match = re.search(r'\b(\d{6})\b', mail.outbox[-1].body)
        assert match is not None
        return match.group(1)

    return _read
