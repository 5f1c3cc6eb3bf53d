"""
Error taxonomy for the certificate maker.

Configuration errors are raised before any rendering starts. Item errors are
raised inside a single render task and converted into Failure outcomes by the
batch processor; they never propagate across item boundaries.
"""


class CertificateMakerError(Exception):
    """Base class for all certificate maker errors."""


# --- Configuration-time errors (fail fast) ---

class ConfigurationError(CertificateMakerError):
    """A render option is invalid; nothing has been rendered."""


class InvalidColorFormat(ConfigurationError):
    """A '#' color spec with the wrong length or non-hex digits."""


class UnknownColorName(ConfigurationError):
    """A color name that is not in the fixed color table."""


class InvalidPosition(ConfigurationError):
    """A position spec that is neither 'center', 'x,y' nor 'center@x,y'."""


class InvalidRenderOption(ConfigurationError):
    """Font size, parallelism or output format out of range."""


# --- Batch-fatal errors ---

class FatalSetupError(CertificateMakerError):
    """The template, font or output directory could not be prepared."""

    def __init__(self, resource: str, reason: str, source=None):
        self.resource = resource
        self.reason = reason
        self.source = source
        location = f" ({source})" if source else ""
        super().__init__(f"Failed to load {resource}{location}: {reason}")


# --- Per-item errors ---

class ItemError(CertificateMakerError):
    """An error scoped to a single input row."""

    def __init__(self, message: str, row_index: int = None):
        self.row_index = row_index
        super().__init__(message)

    @property
    def reason(self) -> str:
        return type(self).__name__


class RowSkipped(ItemError):
    """The row has an empty or missing name."""


class RenderFailure(ItemError):
    """Glyph rasterization or compositing failed for this row."""


class WriteFailure(ItemError):
    """The output image for this row could not be encoded or written."""


# Reason recorded for rows that never started because the batch was stopped.
CANCELLED_REASON = 'Cancelled'


# --- Caller-facing helpers outside the render path ---

class NameSourceError(CertificateMakerError):
    """The names table could not be read or has no name column."""


class AnalysisError(CertificateMakerError):
    """A diagnostic read of an image or font failed."""
