"""Error taxonomy for the classification engine."""


class PlasticEngineError(Exception):
    """Base class for engine failures."""
    pass


class ModelLoadError(PlasticEngineError):
    """Raised when the recognition model cannot be obtained. Retry with load_model()."""
    pass


class InvalidImageError(PlasticEngineError):
    """Raised for zero-size or undecodable images. Retrying the same input will fail again."""
    pass


class ModelNotReadyError(PlasticEngineError):
    """Raised when classification is attempted before a successful load."""
    pass


class InferenceError(PlasticEngineError):
    """Raised when the recognition model fails during classify."""
    pass
