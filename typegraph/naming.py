import re

_UNDERSCORE_RUN = re.compile(r"_+([a-zA-Z0-9])")


def camelize_lower(identifier: str) -> str:
    """Convert a Python identifier to a lowerCamelCase public name.

    Leading underscores are kept so meta names such as ``__typename`` survive:

        >>> camelize_lower("appears_in")
        'appearsIn'
        >>> camelize_lower("__type")
        '__type'
    """
    stripped = identifier.lstrip("_")
    prefix = identifier[: len(identifier) - len(stripped)]
    if not stripped:
        return identifier
    camel = _UNDERSCORE_RUN.sub(lambda m: m.group(1).upper(), stripped)
    return prefix + camel[0].lower() + camel[1:]


__all__ = ["camelize_lower"]
