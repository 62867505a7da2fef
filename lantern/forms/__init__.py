from .form import Form, FormResult, validate
from .validators import (
    EMAIL_SPEC,
    PASSWORD_SPEC,
    SET_PASSWORD_SPEC,
    SIGN_IN_SPEC,
    IsEmail,
    Matches,
    MaxLength,
    MinLength,
    NotEmpty,
    Rule,
    SameAs,
    ValidatorSpec,
    field,
)
