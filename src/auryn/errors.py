"""Domain errors shared by the store, aggregator, server and client."""


class AurynError(Exception):
    """Base class for all Auryn errors."""

    pass


class ValidationError(AurynError):
    """Raised when user input is invalid (e.g. an empty title)."""

    pass


class NotFound(AurynError):
    """Raised when a task id does not exist."""

    pass


class StorageError(AurynError):
    """Base class for failures of the backing task document."""

    pass


class StorageUnavailable(StorageError):
    """Raised when the task document is missing or unreadable."""

    pass


class CorruptState(StorageError):
    """Raised when the task document does not parse as the expected schema."""

    pass


class EventSourceUnavailable(AurynError):
    """Raised when the external calendar could not be queried.

    Soft failure: the aggregator logs it and degrades to an empty event list.
    """

    pass


class CacheInstallError(AurynError):
    """Raised when a shell asset could not be precached during install."""

    pass


class OfflineError(AurynError):
    """Raised on the client when a request could not reach the server."""

    pass
