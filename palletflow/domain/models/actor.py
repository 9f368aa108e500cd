"""Actor identity as resolved by the authentication collaborator."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller. Recorded verbatim on audit records; never re-validated here."""

    id: str
    role: Role
    display_name: str
