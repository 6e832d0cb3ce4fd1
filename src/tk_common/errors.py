"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity
  2xxx: Profile
  3xxx: Order / Ticket
  9xxx: Store / System

Not-found profiles and malformed records are NOT errors (defaults are
used instead); only failed mutations and invalid requests raise.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class NotSignedInError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "No user is signed in", 401)


# --- 2xxx: Profile ---

class ProfileNotEditingError(AppError):
    def __init__(self) -> None:
        super().__init__(2001, "Profile is not in edit mode", 409)


class UnknownProfileFieldError(AppError):
    def __init__(self, field: str) -> None:
        super().__init__(2002, f"Unknown profile field: {field}", 422)


# --- 3xxx: Order / Ticket ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(3001, f"Order not found: {order_id}", 404)


class TicketNotFoundError(AppError):
    def __init__(self, order_id: str, ticket_id: str) -> None:
        super().__init__(3002, f"Ticket {ticket_id} not found in order {order_id}", 404)


class OrderNotEditingError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(3003, f"Order {order_id} is not being edited", 409)


# --- 9xxx: Store / System ---

class StoreUnavailableError(AppError):
    def __init__(self, detail: str = "Ledger store unavailable") -> None:
        super().__init__(9001, detail, 503)


class WriteRejectedError(AppError):
    def __init__(self, path: str, detail: str = "write rejected") -> None:
        super().__init__(9002, f"Write to {path} rejected: {detail}", 502)
