from datetime import datetime, timedelta

import pytest

from lantern.services.auth import AuthService
from lantern.services.user_store import SqliteUserStore


class Clock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, 0)

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def auth(tmp_path, clock):
    users = SqliteUserStore(str(tmp_path / 'var' / 'lantern.db'))
    return AuthService(users, token_ttl=3600, clock=clock)


class TestAuthenticate:

    def test_valid_credentials(self, auth):
        auth.create_user('ada@lantern.test', 'Secret#123')
        user = auth.authenticate('ada@lantern.test', 'Secret#123')
        assert user is not None
        assert user.id is not None

    def test_email_is_case_insensitive(self, auth):
        auth.create_user('ada@lantern.test', 'Secret#123')
        assert auth.authenticate('Ada@Lantern.test', 'Secret#123') is not None

    def test_wrong_password(self, auth):
        auth.create_user('ada@lantern.test', 'Secret#123')
        assert auth.authenticate('ada@lantern.test', 'secret#123') is None

    def test_unknown_user(self, auth):
        assert auth.authenticate('nobody@lantern.test', 'Secret#123') is None

    def test_password_is_hashed(self, auth):
        user = auth.create_user('ada@lantern.test', 'Secret#123')
        assert user.password_hash != 'Secret#123'


class TestPasswordToken:

    def _issue(self, auth, clock):
        user = auth.users.find_by_email('ada@lantern.test')
        user.password_token = auth.generate_password_token()
        user.password_token_created_at = clock()
        auth.users.save(user)
        return user.password_token

    def test_tokens_are_unique(self, auth):
        assert auth.generate_password_token() != auth.generate_password_token()

    def test_valid_token(self, auth, clock):
        auth.create_user('ada@lantern.test', 'Secret#123')
        token = self._issue(auth, clock)
        assert auth.find_user_by_valid_token(token).email == 'ada@lantern.test'

    def test_expired_token(self, auth, clock):
        auth.create_user('ada@lantern.test', 'Secret#123')
        token = self._issue(auth, clock)
        clock.now += timedelta(seconds=3601)
        assert auth.find_user_by_valid_token(token) is None

    def test_set_password_clears_token(self, auth, clock):
        auth.create_user('ada@lantern.test', 'Secret#123')
        token = self._issue(auth, clock)
        user = auth.find_user_by_valid_token(token)

        auth.set_password(user, 'N3w!password')

        assert auth.find_user_by_valid_token(token) is None
        assert auth.authenticate('ada@lantern.test', 'N3w!password') is not None
        assert auth.authenticate('ada@lantern.test', 'Secret#123') is None
