"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AnalyticsError(DomainException):
    """Analytics request failed with an HTTP-like status code attached"""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientNotFoundError(AnalyticsError):
    """Referenced client does not exist"""

    status_code = 404

    def __init__(self, client_id: str):
        super().__init__("Client not found")
        self.client_id = client_id


class InvalidRequestError(AnalyticsError):
    """Invalid enum value or malformed option supplied by the caller"""

    status_code = 400
