"""Custom exceptions for search index synchronization"""


class SearchSyncError(Exception):
    """Base exception for search index synchronization errors"""
    pass


class IndexOperationError(SearchSyncError):
    """Raised when the search engine rejects an operation"""
    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Index operation '{operation}' failed: {message}")


class TransientIndexError(IndexOperationError):
    """Raised when the search engine is unavailable after retries

    The search index may have drifted from the record store when this is raised.
    """
    pass


class BulkFlushError(SearchSyncError):
    """Raised when buffered documents of one type could not be delivered"""
    def __init__(self, type_name: str, cause: Exception):
        self.type_name = type_name
        self.cause = cause
        super().__init__(f"Failed to deliver buffered documents of type '{type_name}': {cause}")


class UnknownRecordTypeError(SearchSyncError):
    """Raised when the storage layer does not know a record type"""
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Unknown record type '{identifier}'")
