"""
Conftest.py: global pytest configuration.

Fixtures:
- application: a started Lantern application rooted in a temporary directory
- client: Flask test client of the application's server
- config: the same configuration without building an application
"""

import os

import pytest

# Environment must be set BEFORE anything from lantern is imported
os.environ["SECRET_KEY"] = "test-secret-key-do-not-use-in-production"
os.environ["DEBUG"] = "False"
os.environ["MAIL_DRIVER"] = "log"
os.environ["LOG_LEVEL"] = "WARNING"


def make_test_config(root_path, **overrides):
    test_config = {
        "TESTING": True,
        "ROOT_PATH": str(root_path),
        "APP_CONTEXT": "test",
        "DATABASE_PATH": os.path.join(str(root_path), "var", "lantern.db"),
        "HOST": "127.0.0.1",
        "PORT": 0,
        "BASE_URL": "http://localhost",
        "MAIL_DRIVER": "log",
        "MAIL_FROM": "noreply@lantern.test",
        "LOG_STORE_ENABLED": False,
        "WTF_CSRF_ENABLED": False,  # forms are posted without tokens in tests
        "RATELIMIT_ENABLED": False,
    }
    test_config.update(overrides)
    return test_config


@pytest.fixture
def config(tmp_path):
    from lantern.config import load_config

    return load_config(make_test_config(tmp_path))


@pytest.fixture
def application(tmp_path):
    """Started application; stopped again after the test."""
    from lantern import create_app
    from lantern.core.server import RUNNING

    application = create_app(test_config=make_test_config(tmp_path))
    application.start()

    yield application

    if application.server.state == RUNNING:
        application.stop()


@pytest.fixture
def client(application):
    with application.server.app.test_client() as client:
        yield client


@pytest.fixture
def user(application):
    """A user with the password 'Secret#123'."""
    auth = application.container.resolve("auth")
    return auth.create_user("ada@lantern.test", "Secret#123")


@pytest.fixture
def build_application(tmp_path):
    """Factory for applications with extra config; each one is stopped afterwards."""
    from lantern import create_app
    from lantern.core.server import RUNNING

    built = []

    def _build(services=None, **overrides):
        application = create_app(test_config=make_test_config(tmp_path, **overrides), services=services)
        built.append(application)
        return application

    yield _build

    for application in built:
        if application.server.state == RUNNING:
            application.stop()
