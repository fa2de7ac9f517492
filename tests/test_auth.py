from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from washdesk.auth import AdminAccount, AuthContext, AuthError, AuthSession

PASSWORD = "correct horse"


@pytest.fixture
def accounts():
    return [AdminAccount(email="boss@wash.test", password_hash=generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000"))]


class TestAuthContext:
    def test_sign_in_creates_a_session(self, accounts):
        auth = AuthContext(accounts)
        when = datetime(2024, 3, 1, 8, 0)

        current = auth.sign_in("Boss@Wash.test ", PASSWORD, now=when)

        assert auth.is_authenticated
        assert current == AuthSession(email="boss@wash.test", signed_in_at=when)

    @pytest.mark.parametrize("email, password", [("boss@wash.test", "wrong"), ("other@wash.test", PASSWORD), ("", "")])
    def test_bad_credentials(self, accounts, email, password):
        auth = AuthContext(accounts)

        with pytest.raises(AuthError):
            auth.sign_in(email, password)
        assert not auth.is_authenticated

    def test_listeners_hear_sign_in_and_sign_out(self, accounts):
        auth = AuthContext(accounts)
        events = []
        auth.subscribe(lambda event, current: events.append((event, current)))

        session = auth.sign_in("boss@wash.test", PASSWORD)
        auth.sign_out()

        assert events == [("SIGNED_IN", session), ("SIGNED_OUT", None)]

    def test_cancelled_subscription_is_silent(self, accounts):
        auth = AuthContext(accounts)
        events = []
        sub = auth.subscribe(lambda event, current: events.append(event))

        sub.cancel()
        sub.cancel()
        auth.sign_in("boss@wash.test", PASSWORD)

        assert not sub.active
        assert events == []

    def test_close_cancels_every_listener(self, accounts):
        auth = AuthContext(accounts)
        events = []
        subs = [auth.subscribe(lambda event, current: events.append(event)) for _ in range(3)]

        auth.close()
        auth.sign_in("boss@wash.test", PASSWORD)

        assert all(not s.active for s in subs)
        assert events == []

    def test_sign_out_without_session_does_nothing(self, accounts):
        auth = AuthContext(accounts)
        events = []
        auth.subscribe(lambda event, current: events.append(event))

        auth.sign_out()

        assert events == []

    def test_restored_session(self, accounts):
        restored = AuthSession(email="boss@wash.test", signed_in_at=datetime(2024, 1, 1))

        auth = AuthContext(accounts, restored)

        assert auth.is_authenticated
        assert auth.session is restored
