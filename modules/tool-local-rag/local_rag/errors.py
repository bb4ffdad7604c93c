"""Error taxonomy for the local retrieval engine."""


class LocalRAGError(Exception):
    """Base class for every error raised by local_rag."""


class ConfigurationError(LocalRAGError, ValueError):
    """No usable embedding credential (missing or rejected API key)."""


class TransportError(LocalRAGError):
    """Network failure while talking to the embedding API. Safe to retry."""


class RateLimitedError(LocalRAGError):
    """Embedding API rate limit hit. Callers should back off."""


class MalformedResponseError(LocalRAGError):
    """Embedding API answered with something we cannot use."""


class PersistenceError(LocalRAGError):
    """Index file could not be written. Handled inside the store."""


class StorageFullError(PersistenceError):
    """Not enough disk space to write the index snapshot."""


class StoragePermissionError(PersistenceError):
    """Index location is not writable."""
