"""
Server: owns the Flask application and the HTTP listener.

Lifecycle: stopped -> starting -> running -> stopping -> stopped

start() assembles the request pipeline in a fixed order:

    1. renderer
    2. security headers, compression, body parsing, static files, access
    3. routes (server middlewares, route middlewares, handler)
    4. error middleware, not-found middleware
    5. view roots
    6. listener (TLS when config/key.pem and config/cert.pem exist)
"""

import os
import threading

from flask import Flask, request
from flask_compress import Compress
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException
from werkzeug.serving import make_server

from ..common.exceptions import HandlerError, MethodNotSupportedError, NotFoundError, ServerStateError
from ..middleware import ErrorCatchHandler, StaticFilesMiddleware, configure_cors, init_security_headers
from .routing import SUPPORTED_METHODS, flask_rules

STOPPED = 'stopped'
STARTING = 'starting'
RUNNING = 'running'
STOPPING = 'stopping'


class Server:

    def __init__(self, config, logger, renderer, registry, access_middleware,
                 error_middleware, not_found_middleware, routes=()):
        self.config = config
        self.logger = logger
        self.renderer = renderer
        self.registry = registry
        self.access_middleware = access_middleware
        self.error_middleware = error_middleware
        self.not_found_middleware = not_found_middleware
        self.pending_routes = list(routes)

        self.app = self._create_app()

        self.path_to_key_pem = os.path.join(config['ROOT_PATH'], 'config', 'key.pem')
        self.path_to_cert_pem = os.path.join(config['ROOT_PATH'], 'config', 'cert.pem')

        self.state = STOPPED
        self.limiter = None
        self._assembled = False
        self._listener = None
        self._thread = None

    @property
    def port(self):
        return self._listener.server_port if self._listener else None

    @property
    def tls_enabled(self) -> bool:
        return bool(self._listener and getattr(self._listener, 'ssl_context', None))

    def add_route(self, route):
        if self._assembled:
            raise ServerStateError('add routes to', 'assembled')
        self.pending_routes.append(route)

    def start(self):
        if self.state != STOPPED:
            raise ServerStateError('start', self.state)

        self.state = STARTING
        try:
            self.assemble()
            self.logger.forget_duplicates()
            self._listen()
        except Exception:
            self.state = STOPPED
            raise

        self.state = RUNNING
        self.logger.notice('started')

    def stop(self):
        if self.state != RUNNING:
            raise ServerStateError('stop', self.state)

        self.state = STOPPING
        try:
            self._listener.shutdown()
            self._listener.server_close()
            self._thread.join()
        finally:
            self._listener = None
            self._thread = None
            self.state = STOPPED
        self.logger.notice('stopped')

    def assemble(self):
        """
        Builds the request pipeline once; later starts reuse it.

        A failed assembly leaves a fresh, empty Flask app behind, so a later
        start does not install hooks and extensions twice.
        """
        if self._assembled:
            return

        try:
            self._assemble(self.app)
        except Exception:
            self.app = self._create_app()
            self.limiter = None
            raise
        self._assembled = True

    def _create_app(self):
        app = Flask('lantern', static_folder=None, template_folder=None)
        app.config.update(self.config)
        app.url_map.strict_slashes = True
        return app

    def _assemble(self, app):
        self.renderer.start(app)

        init_security_headers(app, self.config)
        configure_cors(app, self.config)
        Compress(app)
        self._install_body_parsing(app)

        static_files = StaticFilesMiddleware(
            self.content_paths('public'),
            self.config.get('STATIC_MAX_AGE', 60 * 60 * 24 * 30),
        )
        app.before_request(lambda: static_files.handle(request))
        app.before_request(lambda: self.access_middleware.handle(request))

        self.limiter = Limiter(
            get_remote_address,
            app=app,
            default_limits=[],
            storage_uri=self.config.get('RATELIMIT_STORAGE_URI', 'memory://'),
            strategy='fixed-window',
        )
        self._register_routes()

        app.register_error_handler(HandlerError, self.error_middleware.handle)
        app.register_error_handler(404, self.not_found_middleware.handle)
        app.register_error_handler(NotFoundError, self.not_found_middleware.handle)
        app.register_error_handler(HTTPException, self.error_middleware.handle_http)
        app.register_error_handler(Exception, self.error_middleware.handle)

        self.renderer.bind(self.content_paths(os.path.join('view', 'template')))

    def content_paths(self, subdirectory):
        """Existing ``<path>/<subdirectory>`` dirs, last configured path first."""
        paths = []
        for path in reversed(self.config['APP_PATHS']):
            candidate = os.path.join(path, subdirectory)
            if os.path.isdir(candidate):
                paths.append(candidate)
        return paths

    def render(self, file_path, locals=None):
        return self.renderer.render(file_path, locals)

    def _install_body_parsing(self, app):
        app.config['MAX_CONTENT_LENGTH'] = self.config.get('MAX_CONTENT_LENGTH')
        CSRFProtect(app)

    def _register_routes(self):
        for route in self.pending_routes:
            self.registry.register(route)

        server_middlewares = list(self.config.get('SERVER_MIDDLEWARES') or [])

        for route in self.registry.routes:
            for method in route.methods:
                if method not in SUPPORTED_METHODS:
                    raise MethodNotSupportedError(method, route.name)

        for route in self.registry.routes:
            view = self._build_view(route, server_middlewares + list(route.middlewares))
            for rule in flask_rules(route.path):
                self.app.add_url_rule(rule, endpoint=route.name, view_func=view, methods=list(route.methods))

    def _build_view(self, route, middlewares):
        handler = ErrorCatchHandler(route, self.logger.for_context('route', route.name))

        def view(**params):
            for middleware in middlewares:
                response = middleware.handle(request)
                if response is not None:
                    return response
            return handler(**params)

        view.__name__ = view.__qualname__ = 'route_' + route.name.replace('-', '_')

        if route.rate_limit:
            view = self.limiter.limit(route.rate_limit)(view)
        return view

    def _listen(self):
        host = self.config.get('HOST', '127.0.0.1')
        port = int(self.config.get('PORT', 5000))

        ssl_context = None
        if os.path.isfile(self.path_to_key_pem) and os.path.isfile(self.path_to_cert_pem):
            ssl_context = (self.path_to_cert_pem, self.path_to_key_pem)
        else:
            self.logger.warning('.key and .pem files missing', [self.path_to_key_pem, self.path_to_cert_pem])

        self._listener = make_server(host, port, self.app, threaded=True, ssl_context=ssl_context)
        self._thread = threading.Thread(target=self._listener.serve_forever, name='lantern-server', daemon=True)
        self._thread.start()
