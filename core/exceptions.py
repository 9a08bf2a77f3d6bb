class PortfolioException(Exception):
    """Base exception"""

    pass


class RecordNotFoundError(PortfolioException):
    """Record absent in the document store"""

    def __init__(self, record_type: str, lookup: str):
        self.record_type = record_type
        self.lookup = lookup
        super().__init__(f"{record_type} not found: {lookup}")


class DocumentStoreError(PortfolioException):
    """Document store call failed (connection, timeout, constraint)"""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Document store {operation} failed: {reason}")


# Storage Exceptions
class StorageException(PortfolioException):
    """Base exception for blob storage operations"""

    def __init__(self, blob_path: str, reason: str = ""):
        self.blob_path = blob_path
        self.reason = reason
        message = f"{self.__class__.__name__}: {blob_path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class StorageNotFoundError(StorageException):
    """Blob not found in storage"""

    pass


class StorageUploadError(StorageException):
    """Blob upload failed"""

    pass


class StorageDownloadError(StorageException):
    """Blob download failed"""

    pass


class StorageDeleteError(StorageException):
    """Blob deletion failed"""

    pass


class StoragePermissionError(StorageException):
    """Invalid container or blob name (e.g., path traversal detected)"""

    pass
