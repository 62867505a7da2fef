"""
User handlers: sign in, sign out, password reset and set password.

Each handler receives its collaborators explicitly and exposes
``handle(request, **params)``, the signature the server binds to routes.
"""

from flask import g, redirect, session

from ..common.i18n import get_translator
from ..forms import EMAIL_SPEC, SET_PASSWORD_SPEC, SIGN_IN_SPEC, Form


class SignInHandler:

    def __init__(self, auth, renderer, registry, logger):
        self.auth = auth
        self.renderer = renderer
        self.registry = registry
        self.logger = logger

    def handle(self, request, **params):
        form = Form(SIGN_IN_SPEC).handle(request)
        if not form.valid:
            return self.renderer.render('user/sign-in', {'form': form})

        user = self.auth.authenticate(form.data['email'], form.data['password'])
        if user is None:
            self.logger.notice(f"failed sign in for {form.data['email']}")
            form = form.with_error('user', 'invalid-credentials', 'error.user.invalid_credentials')
            return self.renderer.render('user/sign-in', {'form': form}), 401

        session.clear()
        session['user'] = {'id': user.id, 'email': user.email}
        self.logger.info(f"user {user.email} signed in")
        return redirect(self.registry.build('index'))


class SignOutHandler:

    def __init__(self, registry, logger):
        self.registry = registry
        self.logger = logger

    def handle(self, request, **params):
        user = session.pop('user', None)
        if user:
            self.logger.info(f"user {user.get('email')} signed out")
        return redirect(self.registry.build('index'))


class PasswordResetHandler:
    """
    Sends a set-password link.

    The success page is shown whether or not the address belongs to a user,
    so the form cannot be used to find out which accounts exist.
    """

    def __init__(self, config, auth, users, mail, renderer, registry, i18n, logger):
        self.config = config
        self.auth = auth
        self.users = users
        self.mail = mail
        self.renderer = renderer
        self.registry = registry
        self.i18n = i18n
        self.logger = logger

    def handle(self, request, **params):
        form = Form(EMAIL_SPEC).handle(request)
        if not form.valid:
            return self.renderer.render('user/password-reset', {'form': form})

        user = self.users.find_by_email(form.data['email'])
        if user is None:
            self.logger.info(f"password reset requested for unknown address {form.data['email']}")
            return self.renderer.render('user/password-reset-success')

        token = self.auth.generate_password_token()
        if self.users.find_by_password_token(token) is not None:
            self.logger.error('generated password token already exists', {'user': user.id})
            form = form.with_error('email', 'data-process', 'error.data_process')
            return self.renderer.render('user/password-reset', {'form': form})

        user.password_token = token
        user.password_token_created_at = self.auth.clock()
        self.users.save(user)

        base_url = self.config.get('BASE_URL', '').rstrip('/')
        link = base_url + self.registry.build('user-set-password', {'token': token})

        t = get_translator(self.i18n, g.get('locale') or self.i18n.default_locale)
        self.mail.send({
            'to': user.email,
            'subject': f"{t('application.title')} | {t('user.email.password.subject')}",
            'html': self.renderer.render('user/email/set-password', {'link': link}),
        })

        return self.renderer.render('user/password-reset-success')


class SetPasswordHandler:

    def __init__(self, auth, renderer, logger):
        self.auth = auth
        self.renderer = renderer
        self.logger = logger

    def handle(self, request, token=None, **params):
        user = self.auth.find_user_by_valid_token(token) if token else None
        if user is None:
            return self.renderer.render('user/set-password', {'invalid_token': True}), 400

        form = Form(SET_PASSWORD_SPEC).handle(request)
        if not form.valid:
            return self.renderer.render('user/set-password', {'form': form, 'token': token})

        self.auth.set_password(user, form.data['password'])
        self.logger.info(f"user {user.email} set a new password")
        return self.renderer.render('user/set-password-success')
