from rest_framework import status


class StringAnalyzerError(Exception):
    """
    Base class for the expected, typed outcomes of the string core.

    Each subclass carries the HTTP status the API layer answers with, so views
    can translate any of them without a lookup table.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_response_data(self) -> dict:
        data = {"error": self.message}
        if self.details is not None:
            data["details"] = self.details
        return data


class TypeMismatch(StringAnalyzerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid data type for 'value' (must be a string)."


class Conflict(StringAnalyzerError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "String already exists."


class StringNotFound(StringAnalyzerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "String not found."


class InvalidFilter(StringAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid filter parameters."


class ConflictingFilter(StringAnalyzerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Conflicting filters detected: min_length cannot be greater than max_length."


class Unparseable(StringAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Unable to parse natural language query."
