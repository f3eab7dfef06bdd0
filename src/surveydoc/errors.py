"""
Error taxonomy for the survey document engine.

Only syntax failures are fatal. Structural problems are defaulted by the
normalizer and never raised, and rule evaluation always yields a boolean.
"""


class SurveyDocError(Exception):
    """Base class for all engine errors."""
    pass


class RepairError(SurveyDocError):
    """
    Raised when raw text cannot be repaired into valid JSON.

    Properties:
        code: Always "INVALID_INPUT"
        preview: Leading slice of the offending raw text, for display
    """

    code = "INVALID_INPUT"

    def __init__(self, message: str, preview: str = ""):
        super().__init__(message)
        self.preview = preview


class EditError(SurveyDocError):
    """Raised by structural edit operations."""
    pass


class NodeNotFoundError(EditError):
    """No node carries the requested id."""
    pass


class NodeNotEmptyError(EditError):
    """Deletion refused because the node still has children."""
    pass
