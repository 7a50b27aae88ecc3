from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    The portal never authenticates anyone itself: the OAuth login happens
    upstream and the resulting token carries the subject, the display name
    and the platform roles (applicant|student|staff|admin).
    """

    user_id: str
    username: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_admin(self) -> bool:
        return "admin" in self.roles

    def is_staff(self) -> bool:
        return self.has_any_role({"staff", "admin"})

    def can_enroll(self) -> bool:
        """Accepted members and staff; applicants wait for approval."""
        return self.has_any_role({"student", "staff", "admin"})
