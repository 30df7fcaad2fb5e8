"""Signals sent after file mutations.

Receivers own any cached listing of the affected files and should treat
it as stale when one of these fires.
"""

from django.dispatch import Signal

# Sent with ``instance`` (File) and ``owner`` (Account)
file_uploaded = Signal()

# Sent with ``instance`` (File) and ``owner`` (Account)
file_updated = Signal()

# Sent with ``file_id``, ``blob_id`` and ``owner`` (Account)
file_deleted = Signal()
