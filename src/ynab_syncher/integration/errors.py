from typing import Any

import httpx

RATE_LIMITED_STATUS = 429


class BudgetServiceError(Exception):
    """Raised by the budget service client for any failed call."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_id: str | None = None,
        error_name: str | None = None,
        detail: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_id = error_id
        self.error_name = error_name
        self.detail = detail

    @classmethod
    def from_response(cls, response: httpx.Response) -> "BudgetServiceError":
        error: dict[str, Any] = {}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]

        detail = error.get("detail")
        status = response.status_code
        message = f"YNAB API error {status}"
        if detail:
            message = f"{message}: {detail}"
        return cls(
            message,
            status_code=status,
            error_id=error.get("id"),
            error_name=error.get("name"),
            detail=detail,
        )

    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED_STATUS

    def __str__(self) -> str:
        return self.message
