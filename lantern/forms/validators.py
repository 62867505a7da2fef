"""
Declarative field rules.

A ValidatorSpec is an ordered tuple of (field, rule) pairs. Specs compose by
concatenation, so a derived spec runs every rule of its base plus its own:

    SIGN_IN_SPEC = EMAIL_SPEC + field('password', NotEmpty('error.password.required'))

Rule messages are i18n keys; the error key of a rule defaults to its
decamelized class name (MinLength -> 'min-length').
"""

import re
from dataclasses import dataclass
from typing import Any

from ..common.string_utils import decamelize

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class Rule:
    def __init__(self, message: str, key: str = None):
        self.message = message
        self._key = key

    @property
    def error_key(self) -> str:
        return self._key or decamelize(type(self).__name__)

    def check(self, value: Any, data: dict) -> bool:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.error_key!r})"


def as_text(value) -> str:
    return '' if value is None else str(value)


class NotEmpty(Rule):
    def check(self, value, data):
        return as_text(value).strip() != ''


class MinLength(Rule):
    def __init__(self, length: int, message: str, key: str = None):
        super().__init__(message, key)
        self.length = length

    def check(self, value, data):
        return len(as_text(value)) >= self.length


class MaxLength(Rule):
    def __init__(self, length: int, message: str, key: str = None):
        super().__init__(message, key)
        self.length = length

    def check(self, value, data):
        return len(as_text(value)) <= self.length


class Matches(Rule):
    def __init__(self, pattern, message: str, key: str = None):
        super().__init__(message, key)
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def check(self, value, data):
        return self.pattern.search(as_text(value)) is not None


class IsEmail(Rule):
    def check(self, value, data):
        return EMAIL_PATTERN.match(as_text(value).strip()) is not None


class SameAs(Rule):
    """Passes when the value equals the value of another field."""

    def __init__(self, other_field: str, message: str, key: str = None):
        super().__init__(message, key)
        self.other_field = other_field

    def check(self, value, data):
        return as_text(value) == as_text(data.get(self.other_field))


@dataclass(frozen=True)
class ValidatorSpec:
    rules: tuple = ()

    @property
    def fields(self) -> list[str]:
        seen = []
        for name, _ in self.rules:
            if name not in seen:
                seen.append(name)
        return seen

    def rules_for(self, name: str) -> list[Rule]:
        return [rule for field_name, rule in self.rules if field_name == name]

    def extend(self, *others: 'ValidatorSpec') -> 'ValidatorSpec':
        rules = list(self.rules)
        for other in others:
            rules.extend(other.rules)
        return ValidatorSpec(tuple(rules))

    def __add__(self, other: 'ValidatorSpec') -> 'ValidatorSpec':
        return self.extend(other)


def field(name: str, *rules: Rule) -> ValidatorSpec:
    return ValidatorSpec(tuple((name, rule) for rule in rules))


EMAIL_SPEC = field(
    'email',
    NotEmpty('error.email.required'),
    IsEmail('error.email.invalid'),
    MaxLength(254, 'error.email.max_length_254'),
)

PASSWORD_SPEC = field(
    'password',
    Matches(r'\d', 'error.password.one_number_required', key='one-number-required'),
    Matches(r'[a-zA-ZöäüÖÄÜ]', 'error.password.one_letter_required', key='one-letter-required'),
    Matches(r'[@^#()\[\]{}?!$%&/=*+~,.;:<>\-_]', 'error.password.one_special_char_required',
            key='one-special-char-required'),
    MinLength(8, 'error.password.min_length_8'),
    MaxLength(64, 'error.password.max_length_64'),
)

SIGN_IN_SPEC = EMAIL_SPEC + field('password', NotEmpty('error.password.required'))

SET_PASSWORD_SPEC = PASSWORD_SPEC + field(
    'password_confirmation',
    SameAs('password', 'error.password.confirmation_mismatch'),
)
