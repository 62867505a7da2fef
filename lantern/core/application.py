"""
Application: the dependency graph of one running Lantern app.

Every service is registered once as a shared factory and resolved while the
application is built. Components receive their collaborators through their
constructors; the container is never consulted at request time.
"""

from ..common.i18n import TRANSLATIONS, I18nService
from ..config import load_config, setup_logging
from ..handlers import IndexHandler, PasswordResetHandler, SetPasswordHandler, SignInHandler, SignOutHandler
from ..middleware import AccessMiddleware, ErrorMiddleware, GuestOnlyMiddleware, NotFoundMiddleware
from ..routes import default_routes
from ..services.auth import AuthService
from ..services.filesystem import FileSystemService
from ..services.log_store import SqliteLogStore
from ..services.logger import LoggerService
from ..services.mail import MailService
from ..services.renderer import RendererService
from ..services.user_store import SqliteUserStore
from .container import ServiceContainer
from .routing import RouteRegistry
from .server import Server


class Application:

    def __init__(self, config=None, overrides=None):
        self.config = config if config is not None else load_config()
        setup_logging(self.config)

        self.container = ServiceContainer()
        for name, instance in (overrides or {}).items():
            self.container.override(name, instance)
        self._register_services()

    @property
    def server(self) -> Server:
        return self.container.resolve('server')

    @property
    def logger(self) -> LoggerService:
        return self.container.resolve('logger')

    def start(self):
        self.server.start()

    def stop(self):
        self.server.stop()
        self.logger.close()

    def _register(self, name, factory):
        if not self.container.has(name):
            self.container.register_factory(name, factory)

    def _register_services(self):
        c = self.container
        config = self.config

        self._register('config', lambda: config)
        self._register('file_system', FileSystemService)
        self._register(
            'log_store',
            lambda: SqliteLogStore(config['DATABASE_PATH']) if config.get('LOG_STORE_ENABLED') else None,
        )
        self._register('logger', lambda: LoggerService(
            'application', config['APP_CONTEXT'], config, c.file_system, store=c.log_store,
        ))
        self._register('i18n', lambda: I18nService(
            config.get('DEFAULT_LOCALE', 'en'),
            {locale: table for locale, table in TRANSLATIONS.items()
             if locale in config.get('LOCALES', TRANSLATIONS.keys())},
        ))
        self._register('mail', lambda: MailService(config, c.logger.for_context('service', 'mail')))
        self._register('users', lambda: SqliteUserStore(config['DATABASE_PATH']))
        self._register('auth', lambda: AuthService(c.users, int(config.get('PASSWORD_TOKEN_TTL', 86400))))
        self._register('registry', lambda: RouteRegistry(c.logger.for_context('service', 'registry')))
        self._register('renderer', lambda: RendererService(config, c.i18n, c.registry))

        self._register('access_middleware', lambda: AccessMiddleware(
            c.i18n, c.logger.for_context('middleware', 'access'),
        ))
        self._register('guest_only_middleware', lambda: GuestOnlyMiddleware(c.registry))
        self._register('error_middleware', lambda: ErrorMiddleware(
            config, c.i18n, c.renderer, c.logger.for_context('middleware', 'error'),
        ))
        self._register('not_found_middleware', lambda: NotFoundMiddleware(c.i18n, c.renderer))

        self._register('routes', lambda: default_routes(
            index=IndexHandler(c.renderer),
            sign_in=SignInHandler(c.auth, c.renderer, c.registry, c.logger.for_context('handler', 'user-sign-in')),
            sign_out=SignOutHandler(c.registry, c.logger.for_context('handler', 'user-sign-out')),
            password_reset=PasswordResetHandler(
                config, c.auth, c.users, c.mail, c.renderer, c.registry, c.i18n,
                c.logger.for_context('handler', 'user-password-reset'),
            ),
            set_password=SetPasswordHandler(
                c.auth, c.renderer, c.logger.for_context('handler', 'user-set-password'),
            ),
            guest_only=c.guest_only_middleware,
        ))

        self._register('server', lambda: Server(
            config,
            c.logger.for_context('service', 'server'),
            c.renderer,
            c.registry,
            c.access_middleware,
            c.error_middleware,
            c.not_found_middleware,
            routes=c.routes,
        ))
