import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

PACKAGE_PATH = str(Path(__file__).resolve().parents[1])

# .env.local (development) takes priority over .env (production)
try:
    root_path = Path.cwd()
    env_local = root_path / '.env.local'
    env_prod = root_path / '.env'

    if env_local.exists():
        load_dotenv(str(env_local), override=True)
    elif env_prod.exists():
        load_dotenv(str(env_prod), override=True)
    else:
        _dotenv_path = find_dotenv(usecwd=True)
        if _dotenv_path:
            load_dotenv(_dotenv_path, override=True)
except OSError:
    pass


def _flag(name, default='false'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


def _list(name, separator=','):
    raw = os.environ.get(name, '')
    return [item.strip() for item in raw.split(separator) if item.strip()]


class Config:
    """Base application configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('LANTERN_SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("Neither SECRET_KEY nor LANTERN_SECRET_KEY is set.")

    DEBUG = _flag('DEBUG')

    # Name of the running application, used as the log directory under var/
    APP_CONTEXT = os.environ.get('APP_CONTEXT', 'default')
    ROOT_PATH = os.environ.get('ROOT_PATH') or os.getcwd()

    # Content roots: each may carry public/ and view/template/.
    # Later entries override earlier ones.
    APP_PATHS = [PACKAGE_PATH] + _list('APP_PATHS', os.pathsep)

    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '5000'))
    BASE_URL = os.environ.get('BASE_URL') or f"http://{HOST}:{PORT}"

    DEFAULT_LOCALE = os.environ.get('DEFAULT_LOCALE', 'en')
    LOCALES = _list('LOCALES') or ['en', 'de']

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_STORE_ENABLED = _flag('LOG_STORE_ENABLED')
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or os.path.join(ROOT_PATH, 'var', 'lantern.db')

    MAIL_DRIVER = os.environ.get('MAIL_DRIVER', 'log').lower()
    MAIL_FROM = os.environ.get('MAIL_FROM') or os.environ.get('SMTP_USER') or 'noreply@localhost'

    SMTP_HOST = os.environ.get('SMTP_HOST')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USER = os.environ.get('SMTP_USER')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD')
    SMTP_USE_TLS = _flag('SMTP_USE_TLS', 'true')
    SMTP_USE_SSL = _flag('SMTP_USE_SSL')

    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    SENDGRID_ENDPOINT = os.environ.get('SENDGRID_ENDPOINT', 'https://api.sendgrid.com')

    CORS_ALLOWED_ORIGINS = _list('CORS_ALLOWED_ORIGINS')

    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', str(1024 * 1024)))
    STATIC_MAX_AGE = 60 * 60 * 24 * 30

    PASSWORD_TOKEN_TTL = int(os.environ.get('PASSWORD_TOKEN_TTL', str(60 * 60 * 24)))

    RATELIMIT_ENABLED = _flag('RATELIMIT_ENABLED', 'true')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    WTF_CSRF_ENABLED = _flag('WTF_CSRF_ENABLED', 'true')

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Middlewares applied to every route before its own ones
    SERVER_MIDDLEWARES = []


def load_config(overrides: dict = None) -> dict:
    """Returns the upper-case attributes of Config merged with overrides."""
    config = {key: getattr(Config, key) for key in dir(Config) if key.isupper()}
    config['APP_PATHS'] = list(config['APP_PATHS'])
    if overrides:
        config.update(overrides)
    return config
