"""
Domain errors for booking operations
Each error carries a machine code and the HTTP status the routers answer with
"""

from typing import Optional


class BookingError(Exception):
    code = "booking_error"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(BookingError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Not authenticated"


class Unauthorized(BookingError):
    code = "unauthorized"
    status_code = 403
    default_message = "Unauthorized"


class NotFound(BookingError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class PatientProfileMissing(NotFound):
    code = "patient_profile_missing"
    default_message = "Patient profile not found"


class InvalidState(BookingError):
    code = "invalid_state"
    status_code = 409
    default_message = "Appointment is not in a state that allows this action"


class ValidationError(BookingError):
    code = "validation_error"
    status_code = 422
    default_message = "Invalid input"


class StoreError(BookingError):
    code = "store_error"
    status_code = 500
    default_message = "Database operation failed"


class GatewayError(BookingError):
    """Notification dispatch failure; counted by the reminder sweep"""

    code = "gateway_error"
    status_code = 502
    default_message = "Notification could not be delivered"
