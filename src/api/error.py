from fastapi import status
from libs.result import Error


class ClientError(Exception):
    """
    Use case error surfaced to the HTTP client

    Rendered by the application as {"error": {"code", "message"}}.
    """

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code

    def to_response(self) -> dict:
        return {"error": {"code": self.error.code, "message": self.error.message}}
