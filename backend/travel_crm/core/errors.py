# backend/travel_crm/core/errors.py


class TravelCRMError(Exception):
    """Base class for errors the HTTP layer knows how to report."""


class ConfigurationError(TravelCRMError):
    pass


class GenerationError(TravelCRMError):
    """The model never produced a usable itinerary option."""


class DayCountMismatchError(GenerationError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid option format: expected {expected} days but got {actual} days"
        )


class InvalidOptionError(TravelCRMError):
    pass


class EmailNotConfiguredError(TravelCRMError):
    pass


class InvalidEmailError(TravelCRMError):
    """The message could not be built from the rendered content."""


class EmailDeliveryError(TravelCRMError):
    def __init__(self, message: str, details: str = ""):
        self.details = details
        super().__init__(message)
