# stream_scoring/utils/errors.py
class ScoringError(RuntimeError):
    """
    Base class for every failure raised by the scoring core.
    """


class ConfigurationError(ScoringError):
    """
    Raised for invalid or incomplete step configuration
    (no default model, missing model-path field, etc).
    Should NOT print traceback.
    """


class ArtifactLoadError(ScoringError):
    """
    Raised when a model artifact is missing, unreadable or
    does not contain a usable model. Fatal for the step instance.
    """


class UnsupportedOperationError(ScoringError):
    """
    Raised when a model variant is asked for a capability it lacks
    (e.g. batch prediction on a non batch-capable model).
    """


class InvalidOperationError(ScoringError):
    """
    Raised when an operation is not defined for the model variant
    (e.g. number_of_clusters on a supervised model).
    """


class RowScoringError(ScoringError):
    """
    Raised when scoring a row fails for a reason other than
    attribute coercion (which always degrades to missing).
    """

    def __init__(self, row_number: int, message: str):
        super().__init__(f"Unable to make prediction for row #{row_number}: {message}")
        self.row_number = row_number
