from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .validators import ValidatorSpec, as_text


@dataclass(frozen=True)
class FormResult:
    valid: bool
    data: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)
    submitted: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'data', MappingProxyType(dict(self.data)))
        object.__setattr__(
            self, 'errors',
            MappingProxyType({name: MappingProxyType(dict(errs)) for name, errs in self.errors.items()}),
        )

    def has_error(self, name: str) -> bool:
        return name in self.errors

    def field_errors(self, name: str) -> list[str]:
        return list(self.errors.get(name, {}).values())

    def with_error(self, name: str, key: str, message: str) -> 'FormResult':
        errors = {n: dict(errs) for n, errs in self.errors.items()}
        errors.setdefault(name, {})[key] = message
        return FormResult(valid=False, data=dict(self.data), errors=errors, submitted=self.submitted)


def validate(spec: ValidatorSpec, raw: dict) -> FormResult:
    """
    Runs every rule of every field; no rule short-circuits another.

    Values are coerced to text, so a JSON number reaches rules and handlers as a string.
    """
    if not isinstance(raw, Mapping):
        raw = {}
    data = {name: as_text(raw.get(name)) for name in spec.fields}

    errors = {}
    for name, rule in spec.rules:
        if not rule.check(data[name], data):
            errors.setdefault(name, {})[rule.error_key] = rule.message

    return FormResult(valid=not errors, data=data, errors=errors)


class Form:
    """Binds a ValidatorSpec to an incoming Flask request."""

    def __init__(self, spec: ValidatorSpec):
        self.spec = spec

    def handle(self, request) -> FormResult:
        if request.method != 'POST':
            return FormResult(
                valid=False,
                data={name: request.args.get(name, '') for name in self.spec.fields},
                submitted=False,
            )

        if request.is_json:
            raw = request.get_json(silent=True)
        else:
            raw = request.form.to_dict()
        return validate(self.spec, raw)
