"""Custom exceptions for Folioscribe services."""


class FolioscribeError(Exception):
    """Base class for all Folioscribe errors."""


class UnknownTemplate(FolioscribeError):
    """Raised when a template id has no registered descriptor.

    Attributes:
        template_id: The id that failed to resolve
    """

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Unknown template: {template_id!r}")


class MalformedCollaboratorResponse(FolioscribeError):
    """Raised when the generation collaborator returns unusable output.

    The caller keeps its previous data; nothing is partially applied.

    Attributes:
        raw: The raw response text (may be truncated by the caller for display)
        reason: Human-readable explanation of what was wrong
    """

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Malformed collaborator response: {reason}")


class StaleBlockReference(FolioscribeError):
    """Signals an edit aimed at a block id that no longer exists.

    DocumentModel never raises this; it is built only so the event can be
    logged with a consistent shape while the edit is treated as a no-op.
    """

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Block no longer present: {block_id}")


class SurfaceUnreachable(FolioscribeError):
    """Raised when a rendering surface's document cannot be reached for patching."""

    def __init__(self, message: str = "Rendering surface document is not reachable"):
        self.message = message
        super().__init__(message)


class DocumentInconsistent(FolioscribeError):
    """Raised by save() when a document has dangling references.

    Attributes:
        problems: One line per detected inconsistency
    """

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Document is inconsistent: " + "; ".join(problems))
