from errors import ValidationError


def clean_text(value, field, allow_numbers=False) -> str:
    """Stripped string for ``value``; ``None`` becomes ``''``.

    Anything that is not a string (or, with ``allow_numbers``, an int) is
    rejected rather than coerced.
    """
    if value is None:
        return ''
    if allow_numbers and isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


def optional_text(value, field, allow_numbers=False):
    return clean_text(value, field, allow_numbers=allow_numbers) or None
