from typing import Optional


class EditorError(Exception):
    """
    Base exception for all editor-content failures.
    """

    pass


class EditorConfigurationError(EditorError):
    """
    Raised when the render core is wired incorrectly (a programming defect,
    never an input problem).
    """

    pass


class SubmissionRejected(EditorError):
    """
    Raised when an editor submission cannot be stored.

    reason is a stable machine-readable token; status is the HTTP status a
    host application should answer with.
    """

    def __init__(self, reason: str, status: int, *, document_id: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.status = status
        self.document_id = document_id
