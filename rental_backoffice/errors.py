"""
Error Types - Back-Office Failure Taxonomy
===========================================

Parse and structure errors are converted into failure results
(RestoreReport / ImportResult) before they reach the web or CLI layer.
Only TemplateNotFound is expected to propagate to callers.
"""


class BackofficeError(Exception):
    """Base exception for all back-office errors."""
    pass


class SourceUnavailable(BackofficeError):
    """Raised when the data-access collaborator fails to return an entity kind."""
    pass


class MalformedInput(BackofficeError):
    """Raised when backup or CSV text cannot be parsed."""
    pass


class EmptyFile(MalformedInput):
    """Raised when a CSV/spreadsheet has no header row plus data row."""
    pass


class StructuralValidationFailed(BackofficeError):
    """Raised when a parsed backup does not have the expected envelope shape."""
    pass


class TemplateNotFound(BackofficeError):
    """Raised when a message template id is not registered."""

    def __init__(self, template_id: str):
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class UnsupportedChannelForTemplate(BackofficeError):
    """Raised when a template's channel cannot be used for templated sends."""
    pass


class ProviderDeliveryFailed(BackofficeError):
    """Raised by a messaging provider when a single delivery fails."""
    pass
