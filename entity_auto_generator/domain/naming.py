"""
Naming convention utilities for Entity Auto Generator.

This module converts database identifiers (snake_case, or occasionally mixed
case) into the camelCase field names and PascalCase class names used by the
generated records. Conversions are deterministic and purely syntactic: no
linguistic singularization or pluralization is applied.
"""

import re
from typing import List, Optional

from ..constants import NamingDefaults


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase or PascalCase to snake_case.

    Args:
        name: The string to convert to snake_case

    Returns:
        The converted snake_case string

    Example:
        >>> to_snake_case("UserAccount")
        'user_account'
        >>> to_snake_case("XMLHttpRequest")
        'xml_http_request'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    name = re.sub("__([A-Z])", r"_\1", name)
    name = re.sub("([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def split_words(identifier: str) -> List[str]:
    """
    Split an identifier into lower-case words.

    Mixed-case input is normalized to snake_case first, then split on ``_``
    and any other non-alphanumeric character.

    Raises:
        ValueError: If the identifier contains no alphanumeric characters
    """
    words = [w for w in re.split(r"[^a-zA-Z0-9]+", to_snake_case(identifier)) if w]
    if not words:
        raise ValueError(f"Cannot derive a name from identifier {identifier!r}")
    return words


def to_pascal_case(identifier: str) -> str:
    """
    Convert snake_case to PascalCase.

    Example:
        >>> to_pascal_case("user_account")
        'UserAccount'
    """
    return "".join(word.capitalize() for word in split_words(identifier))


def to_camel_case(identifier: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel_case("created_at")
        'createdAt'
    """
    first, *rest = split_words(identifier)
    return first + "".join(word.capitalize() for word in rest)


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def to_class_name(table_name: str) -> str:
    """Class name for a table, e.g. ``order_item`` -> ``OrderItem``."""
    return to_pascal_case(table_name)


def to_field_name(
    identifier: str,
    referenced_table: Optional[str] = None,
    primary_key: bool = False,
) -> str:
    """
    Field name for a column.

    Primary keys are always named ``id``. Foreign keys are named after the
    table they reference, discarding the column name. Any other column is
    camel-cased.

    Example:
        >>> to_field_name("user_id", referenced_table="app_user")
        'appUser'
    """
    if primary_key:
        # still reject unusable identifiers
        split_words(identifier)
        return NamingDefaults.IDENTIFIER_FIELD_NAME
    if referenced_table:
        return to_camel_case(referenced_table)
    return to_camel_case(identifier)


def singular_field_name(table_name: str) -> str:
    """Field name for a to-one relationship towards ``table_name``."""
    return to_camel_case(table_name)


def plural_field_name(table_name: str) -> str:
    """Field name for a to-many relationship towards ``table_name``."""
    return to_camel_case(table_name) + NamingDefaults.PLURAL_SUFFIX
