class WidgetError(Exception):
    """Base exception for all todowidget errors."""
    pass

class RecoverableError(WidgetError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(WidgetError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to just unknown data"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass
