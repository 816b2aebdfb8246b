"""Exception hierarchy for model loading and detection."""


class DetectorError(Exception):
    """Base exception for the detector service."""
    pass


class LoadError(DetectorError):
    """Model could not be fetched or parsed."""
    pass


class DetectionError(DetectorError):
    """Base exception for a failed detection run."""
    pass


class DecodeError(DetectionError):
    """Uploaded bytes are not a decodable image."""
    pass


class PreprocessError(DetectionError):
    """Decoded image could not be turned into a model input tensor."""
    pass


class InferenceError(DetectionError):
    """Forward pass failed or produced an unusable output."""
    pass


class ModelNotLoadedError(InferenceError):
    """Inference was requested before the model finished loading."""
    pass


class UnsupportedImageTypeError(DetectorError):
    """Uploaded file has a MIME type other than JPEG or PNG."""
    pass


class DetectionInProgressError(DetectorError):
    """The session is already running a detection."""
    pass
