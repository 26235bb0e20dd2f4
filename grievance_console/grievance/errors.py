"""
Failures raised while talking to the Grievance API.

  TransportError       → the request never got an answer (network, timeout)
  HTTPStatusError      → the server answered with a 4xx/5xx status
  BusinessError        → the server answered {"success": false, "message": ...}
  ShapeError           → the answer is not JSON or does not fit the domain types
  AuthenticationError  → login or registration was refused
"""

from typing import Optional


class GrievanceAPIError(Exception):
    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class TransportError(GrievanceAPIError):
    pass


class HTTPStatusError(GrievanceAPIError):
    def __init__(self, message: str, *, status_code: int, path: Optional[str] = None) -> None:
        super().__init__(message, path=path)
        self.status_code = status_code


class BusinessError(GrievanceAPIError):
    pass


class ShapeError(GrievanceAPIError):
    pass


class AuthenticationError(GrievanceAPIError):
    pass
