"""
String helpers shared by the form pipeline and the logger.
"""

import json
import re

_CAMELIZE_PATTERN = re.compile(r'^([A-Z])|[\s\-_.]+(\w)')


def camelize(text: str) -> str:
    """'super_camelized string' -> 'superCamelizedString'"""
    def _replace(match):
        if match.group(2):
            return match.group(2).upper()
        return match.group(1).lower()

    return _CAMELIZE_PATTERN.sub(_replace, text.strip())


def decamelize(text: str, separator: str = '-') -> str:
    """'CamelizedString' -> 'camelized-string'"""
    text = re.sub(r'\s+', '', text)
    text = re.sub(r'([a-z\d])([A-Z])', r'\1' + separator + r'\2', text)
    text = re.sub(r'([A-Z]+)([A-Z][a-z\d]+)', r'\1' + separator + r'\2', text)
    return text.replace('_', separator).lower()


def cast(data) -> str:
    """
    Converts arbitrary log metadata to a single string.

    Mappings and sequences become JSON (objects already seen on the current
    branch are dropped to survive cycles), exceptions become 'Type: message'.
    """
    if data is None:
        return ''

    if isinstance(data, BaseException):
        return f"{type(data).__name__}: {data}"

    if isinstance(data, (dict, list, tuple)):
        return json.dumps(_strip_cycles(data, set()), ensure_ascii=False, separators=(',', ':'), default=str)

    return str(data)


def _strip_cycles(value, seen: set):
    if not isinstance(value, (dict, list, tuple)):
        return value
    if id(value) in seen:
        return None
    seen = seen | {id(value)}
    if isinstance(value, dict):
        return {
            str(k): _strip_cycles(v, seen)
            for k, v in value.items()
            if not (isinstance(v, (dict, list, tuple)) and id(v) in seen)
        }
    return [
        _strip_cycles(v, seen)
        for v in value
        if not (isinstance(v, (dict, list, tuple)) and id(v) in seen)
    ]
