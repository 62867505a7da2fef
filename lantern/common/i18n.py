import re
from collections.abc import Callable

PLACEHOLDER_PATTERN = re.compile(r'\{(\w+)\}')
MISSING_PARAM = 'UNDEFINED'

TRANSLATIONS = {
    "en": {
        "application.title": "LANTERN",
        "application.welcome": "Welcome to Lantern",
        "error.error_message": "An error has occurred with the following message: {message}",
        "error.generic": "Something went wrong. Please try again.",
        "error.not_found": "The page you requested does not exist.",
        "error.data_process": "Your request could not be processed. Please try again.",
        "error.email.required": "Please enter your email address.",
        "error.email.invalid": "Please enter a valid email address.",
        "error.email.max_length_254": "The email address may not exceed 254 characters.",
        "error.password.required": "Please enter your password.",
        "error.password.one_number_required": "The password must contain at least one number.",
        "error.password.one_letter_required": "The password must contain at least one letter.",
        "error.password.one_special_char_required": "The password must contain at least one special character.",
        "error.password.min_length_8": "The password must be at least 8 characters long.",
        "error.password.max_length_64": "The password may not exceed 64 characters.",
        "error.password.confirmation_mismatch": "The passwords do not match.",
        "error.user.invalid_credentials": "Email or password is incorrect.",
        "error.user.invalid_token": "This link is invalid or has expired.",
        "user.sign_in.title": "Sign in",
        "user.sign_in.submit": "Sign in",
        "user.sign_out": "Sign out",
        "user.email": "Email",
        "user.password": "Password",
        "user.password_confirmation": "Confirm password",
        "user.password_reset.title": "Reset password",
        "user.password_reset.subtitle": "Enter your email to receive a link.",
        "user.password_reset.submit": "Send link",
        "user.password_reset.success": "If an account exists for this address, an email with further instructions is on its way.",
        "user.set_password.title": "Choose a new password",
        "user.set_password.submit": "Save password",
        "user.set_password.success": "Your password has been changed. You can sign in now.",
        "user.email.password.subject": "Set your password",
        "user.email.password.body": "Follow the link below to choose a new password:",
    },
    "de": {
        "application.title": "LANTERN",
        "application.welcome": "Willkommen bei Lantern",
        "error.error_message": "Es ist ein Fehler mit folgender Nachricht aufgetreten: {message}",
        "error.generic": "Etwas ist schiefgelaufen. Bitte versuche es erneut.",
        "error.not_found": "Die angeforderte Seite existiert nicht.",
        "error.data_process": "Deine Anfrage konnte nicht verarbeitet werden. Bitte versuche es erneut.",
        "error.email.required": "Bitte gib deine E-Mail-Adresse ein.",
        "error.email.invalid": "Bitte gib eine gültige E-Mail-Adresse ein.",
        "error.password.required": "Bitte gib dein Passwort ein.",
        "error.password.min_length_8": "Das Passwort muss mindestens 8 Zeichen lang sein.",
        "error.user.invalid_credentials": "E-Mail oder Passwort ist falsch.",
        "user.sign_in.title": "Anmelden",
        "user.sign_in.submit": "Anmelden",
        "user.sign_out": "Abmelden",
        "user.email": "E-Mail",
        "user.password": "Passwort",
        "user.password_reset.title": "Passwort zurücksetzen",
        "user.password_reset.submit": "Link senden",
        "user.email.password.subject": "Passwort festlegen",
    },
}


class I18nService:
    """
    Resolves translation keys for a locale.

    Unknown locales fall back to the default locale, unknown keys are returned
    unchanged and placeholders without a matching param render as UNDEFINED.
    """

    def __init__(self, default_locale: str = 'en', translations: dict = None):
        self.default_locale = default_locale
        self.translations = translations or TRANSLATIONS

    @property
    def locales(self) -> list[str]:
        return sorted(self.translations.keys())

    def translate(self, locale: str, key: str, params: dict = None) -> str:
        if not key:
            return key

        table = self.translations.get(locale) or {}
        text = table.get(key)
        if text is None:
            text = self.translations.get(self.default_locale, {}).get(key, key)

        params = params or {}
        return PLACEHOLDER_PATTERN.sub(
            lambda match: str(params.get(match.group(1), MISSING_PARAM)),
            text,
        )

    def negotiate(self, accept_languages) -> str:
        """Picks the best supported locale from a werkzeug Accept-Language header."""
        if accept_languages is None:
            return self.default_locale
        return accept_languages.best_match(self.locales, default=self.default_locale)


def get_translator(i18n: I18nService, locale: str) -> Callable[..., str]:
    def t(key: str, **kwargs) -> str:
        return i18n.translate(locale, key, kwargs)

    return t
