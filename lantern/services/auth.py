import secrets
from datetime import datetime, timedelta

from werkzeug.security import check_password_hash, generate_password_hash

from .user_store import User


class AuthService:
    """Password hashing and password-reset tokens."""

    def __init__(self, users, token_ttl: int, clock=datetime.now):
        self.users = users
        self.token_ttl = token_ttl
        self.clock = clock

    def hash_password(self, password: str) -> str:
        return generate_password_hash(password)

    def authenticate(self, email: str, password: str):
        user = self.users.find_by_email(email)
        if user is None or not user.password_hash:
            return None
        if not check_password_hash(user.password_hash, password):
            return None
        return user

    def create_user(self, email: str, password: str) -> User:
        return self.users.save(User(email=email, password_hash=self.hash_password(password)))

    def generate_password_token(self) -> str:
        return secrets.token_urlsafe(32)

    def find_user_by_valid_token(self, token: str):
        user = self.users.find_by_password_token(token)
        if user is None or user.password_token_created_at is None:
            return None
        if self.clock() - user.password_token_created_at > timedelta(seconds=self.token_ttl):
            return None
        return user

    def set_password(self, user: User, password: str) -> User:
        user.password_hash = self.hash_password(password)
        user.password_token = None
        user.password_token_created_at = None
        return self.users.save(user)
