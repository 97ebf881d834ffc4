"""
Custom exception classes for the AI Sales Dashboard.
These allow us to differentiate between user errors (4xx) and system errors (5xx).
"""

class AppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class FileProcessingError(AppException):
    """Raised when file upload or parsing fails."""
    def __init__(self, message: str = "Failed to process the uploaded file."):
        super().__init__(message, status_code=400)

class UnsupportedFileTypeError(AppException):
    """Raised when the uploaded file is neither CSV nor XLSX."""
    def __init__(self, message: str = "Please upload a CSV or Excel file."):
        super().__init__(message, status_code=400)

class ConfigurationError(AppException):
    """Raised at request time when the model credential is missing."""
    def __init__(self, message: str = "GROQ_API_KEY is not configured."):
        super().__init__(message, status_code=500)

class AnalystUnavailableError(AppException):
    """Raised when network or parse failures exhaust the retry budget."""
    def __init__(self, message: str = "The AI service could not be reached."):
        super().__init__(message, status_code=500)

class InvalidQueryError(AppException):
    """Raised when the user input is empty or invalid."""
    def __init__(self, message: str = "The query is invalid or incomplete."):
        super().__init__(message, status_code=400)
