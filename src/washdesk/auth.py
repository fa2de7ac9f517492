from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from werkzeug.security import check_password_hash

logger = logging.getLogger(__name__)


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class AdminAccount:
    email: str
    password_hash: str


@dataclass(frozen=True)
class AuthSession:
    email: str
    signed_in_at: datetime


SessionListener = Callable[[str, Optional[AuthSession]], None]


class Subscription:
    def __init__(self, owner: AuthContext, listener: SessionListener) -> None:
        self._owner = owner
        self._listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._owner._listeners.remove(self)
            self.active = False


class AuthContext:
    """Holds the signed-in admin for one request or CLI run.

    Listeners registered with ``subscribe`` hear about every sign-in and
    sign-out as ``(event, session)`` where event is ``"SIGNED_IN"`` or
    ``"SIGNED_OUT"``. ``close`` cancels all of them.
    """

    def __init__(self, accounts: Iterable[AdminAccount], session: AuthSession | None = None) -> None:
        self._accounts = {a.email.lower(): a for a in accounts}
        self._session = session
        self._listeners: list[Subscription] = []

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def sign_in(self, email: str, password: str, *, now: datetime | None = None) -> AuthSession:
        account = self._accounts.get((email or "").strip().lower())
        if account is None or not check_password_hash(account.password_hash, password or ""):
            logger.info("Rejected sign-in for %s", email)
            raise AuthError("Invalid email or password.")

        self._session = AuthSession(email=account.email, signed_in_at=now or datetime.now())
        self._notify("SIGNED_IN")
        return self._session

    def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._notify("SIGNED_OUT")

    def subscribe(self, listener: SessionListener) -> Subscription:
        sub = Subscription(self, listener)
        self._listeners.append(sub)
        return sub

    def close(self) -> None:
        for sub in list(self._listeners):
            sub.cancel()

    def _notify(self, event: str) -> None:
        for sub in list(self._listeners):
            sub._listener(event, self._session)
