"""Exceptions for files app."""


class FileOperationError(Exception):
    """Base class for file operation failures."""


class StoreWriteError(FileOperationError):
    """Raised when a write to the object or document store fails.

    When raised by the upload or delete protocol, ``transaction`` holds
    the state machine of the failed attempt.
    """

    def __init__(self, message: str, transaction: object | None = None) -> None:
        """Initialize StoreWriteError.

        Args:
            message: Description of the failed write.
            transaction: Upload or delete transaction, if any.
        """
        self.transaction = transaction
        super().__init__(message)


class StoreReadError(FileOperationError):
    """Raised when reading file metadata fails."""


class FileTooLargeError(FileOperationError):
    """Raised when a single file exceeds the upload size ceiling."""

    def __init__(self, name: str, size_bytes: int, max_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            name: Name of the rejected file.
            size_bytes: Size of the rejected file.
            max_bytes: Upload size ceiling.
        """
        self.name = name
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes

        max_mb = max_bytes // (1024 * 1024)
        super().__init__(
            f'{name} is too large: {size_bytes} bytes, '
            f'max file size is {max_mb}MB',
        )


class QuotaExceededError(FileOperationError):
    """Raised when upload would exceed the account's storage capacity."""

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = quota_bytes - used_bytes
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )


class FileMissingError(FileOperationError):
    """Raised when a file does not exist or is not visible to the caller."""


class FileAccessDeniedError(FileOperationError):
    """Raised when a caller mutates a file it does not own."""


class InvalidShareError(FileOperationError):
    """Raised when sharing is updated with an invalid email."""


class TransactionStateError(RuntimeError):
    """Raised on an illegal upload or delete state transition."""


class OrphanedBlobError(Exception):
    """Blob left in the object store without a metadata record.

    Recorded on the transaction and logged, never raised to callers.
    """

    def __init__(self, blob_id: str) -> None:
        """Initialize OrphanedBlobError.

        Args:
            blob_id: Id of the leaked blob.
        """
        self.blob_id = blob_id
        super().__init__(f'Orphaned blob: {blob_id}')
