"""State machines for the two-phase upload and delete protocols.

The object store and the document store share no transaction, so the
order of the two writes is the whole correctness mechanism. Each attempt
records the states it passes through, which makes every transition
observable in logs and tests.

Upload::

    created -> metadata_pending -> committed
    created -> failed                                (blob write failed)
    metadata_pending -> failed -> compensating -> compensated | orphaned

Delete::

    pending -> metadata_deleted -> deleted | blob_leaked
    pending -> failed                                (metadata kept)
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import ClassVar, Final

from server.apps.files.exceptions import OrphanedBlobError, TransactionStateError

logger = logging.getLogger(__name__)


class UploadState(enum.StrEnum):
    """States of an upload attempt."""

    CREATED = 'created'
    METADATA_PENDING = 'metadata_pending'
    COMMITTED = 'committed'
    FAILED = 'failed'
    COMPENSATING = 'compensating'
    COMPENSATED = 'compensated'
    ORPHANED = 'orphaned'


class DeleteState(enum.StrEnum):
    """States of a delete attempt."""

    PENDING = 'pending'
    METADATA_DELETED = 'metadata_deleted'
    DELETED = 'deleted'
    BLOB_LEAKED = 'blob_leaked'
    FAILED = 'failed'


_UPLOAD_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    UploadState.CREATED: frozenset((
        UploadState.METADATA_PENDING,
        UploadState.FAILED,
    )),
    UploadState.METADATA_PENDING: frozenset((
        UploadState.COMMITTED,
        UploadState.FAILED,
    )),
    UploadState.FAILED: frozenset((UploadState.COMPENSATING,)),
    UploadState.COMPENSATING: frozenset((
        UploadState.COMPENSATED,
        UploadState.ORPHANED,
    )),
}

_DELETE_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    DeleteState.PENDING: frozenset((
        DeleteState.METADATA_DELETED,
        DeleteState.FAILED,
    )),
    DeleteState.METADATA_DELETED: frozenset((
        DeleteState.DELETED,
        DeleteState.BLOB_LEAKED,
    )),
}


@dataclass
class _Transaction:
    """Ordered record of protocol states."""

    transitions: ClassVar[dict[str, frozenset[str]]] = {}

    history: list[str] = field(default_factory=list)
    orphan: OrphanedBlobError | None = None

    @property
    def state(self) -> str:
        """Current state, the last one recorded."""
        return self.history[-1]

    def advance(self, new_state: str) -> None:
        """Move to the next state.

        Args:
            new_state: State to enter.

        Raises:
            TransactionStateError: If the transition is not allowed.
        """
        allowed = self.transitions.get(self.state, frozenset())
        if new_state not in allowed:
            raise TransactionStateError(
                f'{type(self).__name__}: cannot go from '
                f'{self.state} to {new_state}',
            )
        logger.debug(
            '%s %s -> %s',
            type(self).__name__,
            self.state,
            new_state,
        )
        self.history.append(new_state)


@dataclass
class UploadTransaction(_Transaction):
    """One file's way through the upload protocol."""

    transitions: ClassVar[dict[str, frozenset[str]]] = _UPLOAD_TRANSITIONS

    name: str = ''
    blob_id: str | None = None

    def __post_init__(self) -> None:
        """Start in the created state."""
        if not self.history:
            self.history.append(UploadState.CREATED)


@dataclass
class DeleteTransaction(_Transaction):
    """One file's way through the delete protocol."""

    transitions: ClassVar[dict[str, frozenset[str]]] = _DELETE_TRANSITIONS

    file_id: int | None = None
    blob_id: str = ''

    def __post_init__(self) -> None:
        """Start in the pending state."""
        if not self.history:
            self.history.append(DeleteState.PENDING)
