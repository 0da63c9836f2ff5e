"""
Error handling system for Thai Learning Cards.

This module provides the error taxonomy used by the audio and export core,
plus a collector that logs and summarizes errors for a single operation.
"""

import logging
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur."""
    INPUT_VALIDATION = "input_validation"
    AUDIO_RESOLUTION = "audio_resolution"
    AUDIO_GENERATION = "audio_generation"
    PLAYBACK = "playback"
    EXPORT = "export"
    CARD_STORE = "card_store"
    NETWORK = "network"


@dataclass
class ProcessingError:
    """Represents an error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class FlashcardError(Exception):
    """Base exception for Thai Learning Cards errors."""

    category = ErrorCategory.INPUT_VALIDATION
    severity = ErrorSeverity.ERROR
    error_code = "GEN_001"
    suggested_actions: List[str] = []

    def __init__(self, message: str, details: str = "",
                 context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        self.processing_error = ProcessingError(
            category=self.category,
            severity=self.severity,
            message=message,
            details=details,
            suggested_actions=list(self.suggested_actions),
            error_code=self.error_code,
            context=context
        )
        super().__init__(message)


class InputValidationError(FlashcardError):
    """Raised when request or card data fails validation."""
    error_code = "INPUT_001"
    suggested_actions = ["Check that every card has all required fields"]


class ResolutionFailure(FlashcardError):
    """Raised when no audio source is available after the whole fallback chain."""
    category = ErrorCategory.AUDIO_RESOLUTION
    severity = ErrorSeverity.WARNING
    error_code = "AUDIO_001"
    suggested_actions = [
        "Check your internet connection",
        "Generate audio for the card from the management page",
    ]


class GenerationTimeout(ResolutionFailure):
    """Raised when a remote TTS job never reaches done within the polling budget."""
    category = ErrorCategory.AUDIO_GENERATION
    error_code = "AUDIO_002"
    suggested_actions = ["Retry audio generation later"]


class GenerationError(ResolutionFailure):
    """Raised when the remote TTS service rejects or fails a job."""
    category = ErrorCategory.AUDIO_GENERATION
    error_code = "AUDIO_003"
    suggested_actions = ["Retry audio generation later"]


class PlaybackFailure(FlashcardError):
    """Raised when a playback backend rejects a source."""
    category = ErrorCategory.PLAYBACK
    severity = ErrorSeverity.WARNING
    error_code = "PLAY_001"
    suggested_actions = ["Check the audio output device"]


class EncodingFailure(FlashcardError):
    """Raised when archive construction fails partway through."""
    category = ErrorCategory.EXPORT
    error_code = "EXPORT_001"
    suggested_actions = ["Try the JSON export format instead"]


class CardStoreError(FlashcardError):
    """Raised when level data cannot be read or written."""
    category = ErrorCategory.CARD_STORE
    error_code = "STORE_001"
    suggested_actions = ["Check that the data directory is writable"]


class ErrorHandler:
    """
    Collects and reports errors for one operation.

    Errors and warnings are kept separately and each one is logged at the
    level matching its severity.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: List[ProcessingError] = []

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def add_exception(self, exc: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Record an exception, wrapping foreign exceptions as export errors."""
        if isinstance(exc, FlashcardError):
            error = exc.processing_error
            if context:
                error.context.update(context)
        else:
            error = ProcessingError(
                category=ErrorCategory.EXPORT,
                severity=ErrorSeverity.ERROR,
                message=str(exc) or exc.__class__.__name__,
                details=exc.__class__.__name__,
                suggested_actions=[],
                error_code="GEN_002",
                context=context
            )
        self.add_error(error)
        return error

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()
