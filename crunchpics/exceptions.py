"""
Custom exception hierarchy for crunchpics.

Setup problems and catalog write failures are fatal for a run. File read
and copy failures only affect the file being processed.
"""


class CrunchPicsError(Exception):
    """Base exception for all crunchpics errors."""
    pass


class SetupError(CrunchPicsError):
    """Raised when the run cannot start (bad arguments, missing folder or tool)."""
    pass


class InvalidPathError(CrunchPicsError, ValueError):
    """Raised when a path cannot be turned into a name and tags."""
    pass


class FileHashError(CrunchPicsError, OSError):
    """Raised when a file cannot be read, hashed or classified."""
    pass


class FileOperationError(CrunchPicsError, OSError):
    """Raised when copying a file to the destination fails."""
    pass


class StoreWriteError(CrunchPicsError):
    """Raised when a catalog insert or update fails."""
    pass


class ConflictError(StoreWriteError):
    """Raised when an insert hits a (hash, size) that is already cataloged."""
    pass
