"""
Error types shared by the pipeline and its collaborators.
"""
import logging

logger = logging.getLogger(__name__)


class PhotoCoachError(Exception):
    """Base exception for photocoach errors"""
    def __init__(self, message, error_code, details=None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        """Plain dict carried on a not-ready FrameResult"""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


class ModelUnavailableError(PhotoCoachError):
    """Pose or object model could not be loaded"""
    def __init__(self, model, reason=None):
        super().__init__(
            message=f"Model not available: {model}",
            error_code="MODEL_UNAVAILABLE",
            details={
                "model": model,
                "reason": reason,
                "suggestion": "Check the model asset path or network access for the download"
            }
        )


class FrameSourceError(PhotoCoachError):
    """A frame could not be acquired or read"""
    def __init__(self, source, reason=None):
        super().__init__(
            message=f"Could not read a frame from {source}",
            error_code="FRAME_SOURCE_FAILED",
            details={
                "source": source,
                "reason": reason,
                "suggestion": "Check the camera connection and permissions"
            }
        )


class NotReadyError(PhotoCoachError):
    """Operation attempted while the pipeline is not ready"""
    def __init__(self, reason=None):
        super().__init__(
            message="Capture pipeline is not ready",
            error_code="NOT_READY",
            details={
                "reason": reason,
                "suggestion": "Wait for the models to load or call mark_ready()"
            }
        )


def handle_error(error):
    """
    Log an error and turn it into a plain dict for the caller.

    Args:
        error: Exception raised by a collaborator

    Returns:
        dict: Error description with a stable error_code
    """
    if isinstance(error, PhotoCoachError):
        logger.error(f"{error.error_code}: {error.message}")
        if error.details:
            logger.debug(f"Error details: {error.details}")
        return error.to_dict()

    logger.error(f"Unexpected error: {error}")
    logger.exception("Full traceback:")
    return {
        "error": "An unexpected error occurred",
        "error_code": "UNEXPECTED_ERROR",
        "details": {
            "error_type": type(error).__name__,
            "error_message": str(error)
        }
    }
