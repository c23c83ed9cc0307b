"""Per-request identity of the authenticated caller."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """
    Who is making the request.

    Built once per request from the verified session token and the current
    user row, then passed explicitly to every operation that needs it.
    """

    user_id: int
    email: str
    name: str
    is_admin: bool = False
