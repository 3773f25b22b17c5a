"""Domain errors, mapped to JSON responses by the handler in ``voxnote.main``."""


class VoxnoteError(Exception):
    """Base error carrying the HTTP status it surfaces as."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InputError(VoxnoteError):
    """Malformed or missing request input."""

    status_code = 400


class ConfigurationError(VoxnoteError):
    """Capability credentials are absent."""


class TranscriptionError(VoxnoteError):
    """The transcription capability failed or returned no usable text."""


class StorageError(VoxnoteError):
    """The blob store or record store rejected an operation."""


class NotFoundError(VoxnoteError):
    """Record not found."""

    status_code = 404
