"""
Database type name to Python scalar type mapping.

The mapping is a plain lookup table keyed by the lower-cased
``information_schema.columns.data_type`` value. It is total: anything not in
the table maps to ``ScalarType.UNKNOWN``.
"""

from typing import Dict

from .models import ScalarType


DB_TYPE_MAP: Dict[str, ScalarType] = {
    "boolean": ScalarType.BOOLEAN,
    "smallint": ScalarType.SMALL_INTEGER,
    "smallserial": ScalarType.SMALL_INTEGER,
    "integer": ScalarType.INTEGER,
    "serial": ScalarType.INTEGER,
    "bigint": ScalarType.BIG_INTEGER,
    "bigserial": ScalarType.BIG_INTEGER,
    "text": ScalarType.STRING,
    "character varying": ScalarType.STRING,
    "character": ScalarType.STRING,
    "numeric": ScalarType.DECIMAL,
    "money": ScalarType.DECIMAL,
    "real": ScalarType.FLOAT,
    "double precision": ScalarType.DOUBLE,
    "date": ScalarType.DATE,
    "time": ScalarType.TIME,
    "time without time zone": ScalarType.TIME,
    "timestamp": ScalarType.TIMESTAMP,
    "timestamp without time zone": ScalarType.TIMESTAMP,
}

FALLBACK_TYPE = ScalarType.UNKNOWN


def _normalize(db_type_name: str) -> str:
    return (db_type_name or "").strip().lower()


def map_scalar_type(db_type_name: str) -> ScalarType:
    """
    Map a database type name to a Python scalar type.

    Never raises; unrecognized or empty names map to ``ScalarType.UNKNOWN``.

    Example:
        >>> map_scalar_type("character varying")
        <ScalarType.STRING: ('string', 'str', None)>
        >>> map_scalar_type("hstore")
        <ScalarType.UNKNOWN: ('unknown', 'Any', 'typing')>
    """
    return DB_TYPE_MAP.get(_normalize(db_type_name), FALLBACK_TYPE)


def is_recognized_type(db_type_name: str) -> bool:
    """True when ``db_type_name`` has an explicit mapping."""
    return _normalize(db_type_name) in DB_TYPE_MAP
