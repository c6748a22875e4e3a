"""
Error kinds raised by the ingestion and grounding core.
Every error carries a human-readable message; the API layer maps kinds to status codes.
"""


class SynapseError(Exception):
    """Base class for all core errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


class UnsupportedFormatError(SynapseError):
    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}")


class StorageError(SynapseError):
    """Blob could not be resolved or read."""


class TranscriptionError(SynapseError):
    """Transcription service failed or returned no usable alternative."""


class EmbeddingServiceError(SynapseError):
    pass


class CompletionServiceError(SynapseError):
    pass


class DocumentNotFoundError(SynapseError):
    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found")


class SessionNotFoundError(SynapseError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class IngestionConflictError(SynapseError):
    """Ingestion was triggered while the document is not in a triggerable state."""


class PersonalityNotFoundError(SynapseError):
    def __init__(self, personality_id: str):
        self.personality_id = personality_id
        super().__init__(f"Unknown personality: {personality_id}")


class ParseError(SynapseError):
    """Stored file was read but its content could not be parsed."""


class ContentNotFoundError(SynapseError):
    def __init__(self, document_id: str, content_type: str):
        self.document_id = document_id
        self.content_type = content_type
        super().__init__(f"No {content_type} generated for document {document_id}")
