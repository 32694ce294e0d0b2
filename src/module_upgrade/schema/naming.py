"""Table naming conventions.

A naming convention is a plain callable turning a definition's table
name into the physical table name.  Conventions are injected into the
translator; ``default_naming`` is used when none is given.
"""

from collections.abc import Callable

NamingConvention = Callable[[str], str]


def default_naming(name: str) -> str:
    """Strip any namespace qualifier and return the bare table name.

    Example:
        >>> default_naming("Shop\\\\Blog\\\\post")
        'post'
        >>> default_naming("post_lang")
        'post_lang'
    """
    for separator in ("\\", "."):
        if separator in name:
            name = name.rsplit(separator, 1)[1]
    return name


def prefixed_naming(prefix: str) -> NamingConvention:
    """Build a convention that prepends a table prefix (e.g. ``"ps_"``).

    Example:
        >>> prefixed_naming("ps_")("post")
        'ps_post'
    """

    def naming(name: str) -> str:
        return f"{prefix}{default_naming(name)}"

    return naming
