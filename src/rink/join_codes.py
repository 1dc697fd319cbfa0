import re
import secrets
import string

JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code(length=JOIN_CODE_LENGTH, existing=()):
    """Generate a random join code that is not already in ``existing``."""
    taken = {normalize_join_code(c) for c in existing}
    while True:
        code = ''.join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))
        if code not in taken:
            return code


def normalize_join_code(code):
    if code is None:
        return ''
    return str(code).strip().upper()


def is_valid_join_code(code):
    code = normalize_join_code(code)
    return re.fullmatch(rf'[A-Z0-9]{{{JOIN_CODE_LENGTH}}}', code) is not None
