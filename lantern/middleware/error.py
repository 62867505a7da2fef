"""
Error handling at the edge of the request pipeline.

- ErrorCatchHandler wraps a route handler; anything it raises (apart from
  HTTP exceptions and NotFoundError) is re-raised as HandlerError.
- ErrorMiddleware turns HandlerError and other failures into an error page
  or a JSON body.
- NotFoundMiddleware answers 404 the same way.
"""

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..common.exceptions import HandlerError, NotFoundError


def wants_json(req) -> bool:
    if req.is_json:
        return True
    return req.accept_mimetypes.best == 'application/json'


class ErrorCatchHandler:
    def __init__(self, route, logger):
        self.route = route
        self.logger = logger

    def __call__(self, **params):
        try:
            return self.route.handler(request, **params)
        except (HTTPException, HandlerError, NotFoundError):
            raise
        except Exception as e:
            self.logger.error(f"route {self.route.name} raised", e)
            raise HandlerError(self.route.name, e) from e


class ErrorMiddleware:

    def __init__(self, config, i18n, renderer, logger):
        self.config = config
        self.i18n = i18n
        self.renderer = renderer
        self.logger = logger

    def _translate(self, key, params=None):
        return self.i18n.translate(g.get('locale') or self.i18n.default_locale, key, params)

    def handle(self, error):
        if isinstance(error, HTTPException):
            return self.handle_http(error)

        if not isinstance(error, HandlerError):
            self.logger.critical(f"unhandled {type(error).__name__} on {request.path}", error)

        status = 500
        message = self._translate('error.generic')
        body = {'status': status, 'message': message}
        if self.config.get('DEBUG'):
            original = getattr(error, 'original_error', error)
            body['debug_info'] = {
                'exception_type': type(original).__name__,
                'error': str(original),
            }

        if wants_json(request):
            return jsonify(body), status

        return self.renderer.render('error', {
            'status': status,
            'message': message,
            'debug_info': body.get('debug_info'),
        }), status

    def handle_http(self, error: HTTPException):
        status = error.code or 500
        message = error.description or error.name
        if wants_json(request):
            return jsonify({'status': status, 'message': message}), status
        return self.renderer.render('error', {'status': status, 'message': message}), status


class NotFoundMiddleware:

    def __init__(self, i18n, renderer):
        self.i18n = i18n
        self.renderer = renderer

    def handle(self, error):
        locale = g.get('locale') or self.i18n.default_locale
        message = self.i18n.translate(locale, 'error.not_found')
        if wants_json(request):
            return jsonify({'status': 404, 'message': message, 'path': request.path}), 404
        return self.renderer.render('404', {'message': message}), 404
