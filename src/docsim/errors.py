"""Input-validation errors raised by the cluster labeling routines.

All of them are caller contract violations detected before any computation,
so they subclass ``ValueError`` and are never retried.
"""


class LabelingError(ValueError):
    """Base class for invalid inputs to cluster labeling."""


class InvalidClusterCount(LabelingError):
    """Fewer than two cluster centers; the mean of the other clusters is undefined."""


class IndexOutOfRange(LabelingError):
    """The requested cluster index does not address a row of the center matrix."""


class InvalidRequestSize(LabelingError):
    """The number of requested features is below 1 or above the feature count."""


class DimensionMismatch(LabelingError):
    """Center rows (or feature names) do not share one feature dimension."""
