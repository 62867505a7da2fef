import os

from flask import g, has_app_context, render_template
from jinja2 import ChoiceLoader, FileSystemLoader

from ..common.i18n import get_translator

TEMPLATE_EXTENSION = '.html'


class RendererService:
    """Jinja rendering bound to the Flask app owned by the server."""

    def __init__(self, config, i18n, registry):
        self.config = config
        self.i18n = i18n
        self.registry = registry
        self.app = None
        self.view_paths = []

    def start(self, app):
        self.app = app
        app.jinja_env.globals['url'] = self.url
        app.context_processor(self._inject_defaults)

    def bind(self, view_paths):
        """View roots are searched in the given order, first hit wins."""
        self.view_paths = list(view_paths)
        self.app.jinja_loader = ChoiceLoader([FileSystemLoader(path) for path in self.view_paths])

    def url(self, route_name, **params):
        return self.registry.build(route_name, params)

    def render(self, file_path, locals=None):
        if self.app is None:
            raise RuntimeError('renderer has not been started')

        context = dict(locals or {})
        if not isinstance(context.get('base_url'), str) or not context['base_url']:
            context['base_url'] = self.config.get('BASE_URL', '')

        name = file_path if os.path.splitext(file_path)[1] else file_path + TEMPLATE_EXTENSION
        if has_app_context():
            return render_template(name, **context)
        with self.app.app_context():
            return render_template(name, **context)

    def _inject_defaults(self):
        locale = g.get('locale') or self.config.get('DEFAULT_LOCALE', 'en')
        return {
            't': get_translator(self.i18n, locale),
            'locale': locale,
            'current_user': g.get('user'),
            'application_title': self.i18n.translate(locale, 'application.title'),
        }
