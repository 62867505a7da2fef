from flask import g, redirect, session


class AccessMiddleware:
    """
    Runs for every request after static files had their chance.

    Loads the signed-in user from the session and settles the request locale
    (``?locale=`` > session > Accept-Language > default).
    """

    def __init__(self, i18n, logger):
        self.i18n = i18n
        self.logger = logger

    def handle(self, request):
        g.user = session.get('user')

        requested = request.args.get('locale')
        if requested in self.i18n.locales:
            session['locale'] = requested

        locale = session.get('locale')
        if locale not in self.i18n.locales:
            locale = self.i18n.negotiate(request.accept_languages)
        g.locale = locale

        self.logger.debug(f"{request.method} {request.path}")
        return None


class GuestOnlyMiddleware:
    """Sends signed-in users away from pages meant for anonymous visitors."""

    def __init__(self, registry, target_route='index'):
        self.registry = registry
        self.target_route = target_route

    def handle(self, request):
        if g.get('user'):
            return redirect(self.registry.build(self.target_route))
        return None
