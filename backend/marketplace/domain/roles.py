"""Caller identity: one account entity tagged with a role."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AccountRole(str, Enum):
    GUEST = "guest"
    USER = "user"
    HOST = "host"
    ORGANIZER = "organizer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as handed over by the identity provider.

    Guests carry no account id; they can check availability and book as
    guest checkout, nothing else.
    """

    account_id: Optional[int]
    role: AccountRole

    @property
    def is_guest(self) -> bool:
        return self.account_id is None or self.role == AccountRole.GUEST

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    def owns(self, account_id: Optional[int]) -> bool:
        return not self.is_guest and account_id is not None and self.account_id == account_id


GUEST = Principal(account_id=None, role=AccountRole.GUEST)
