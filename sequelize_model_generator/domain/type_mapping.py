"""
Database column type to Sequelize data type mapping.
"""

import json
import logging
import re
from typing import Optional, Tuple

from ..constants import (
    SEQUELIZE_TYPE_MAP,
    LENGTH_TYPES,
    PRECISION_TYPES,
    FALLBACK_TYPE,
    SequelizeTypes,
)
from .models import Code
from .schema import Column

logger = logging.getLogger(__name__)

# "character varying(50)", "numeric(10, 2)", "integer[]"
TYPE_PATTERN = re.compile(
    r"^(?P<base>[a-z_][\w .\-]*?)\s*(?:\(\s*(?P<first>\d+)\s*(?:,\s*(?P<second>\d+)\s*)?\))?\s*(?P<array>\[\])?$"
)


def parse_db_type(db_type: str) -> Tuple[str, Optional[int], Optional[int], bool]:
    """
    Split a database type into base name, size arguments and array flag.

    Example:
        >>> parse_db_type("numeric(10, 2)")
        ('numeric', 10, 2, False)
    """
    normalized = " ".join((db_type or "").lower().split())
    match = TYPE_PATTERN.match(normalized)
    if not match:
        return normalized, None, None, False
    first = match.group("first")
    second = match.group("second")
    return (
        match.group("base"),
        int(first) if first is not None else None,
        int(second) if second is not None else None,
        match.group("array") is not None,
    )


def map_db_type_to_sequelize(db_type: str) -> str:
    """Map a database type name to a Sequelize data type name."""
    sequelize_type = SEQUELIZE_TYPE_MAP.get(db_type)
    if sequelize_type is None:
        logger.debug(f"Unknown database type '{db_type}', falling back to {FALLBACK_TYPE}")
        return FALLBACK_TYPE
    return sequelize_type


def type_expression(column: Column, variable: str) -> Code:
    """
    Build the Sequelize type expression for a column.

    Args:
        column: The column to describe
        variable: Name of the DataTypes variable in the generated module

    Returns:
        Source text such as ``Seq.STRING(50)`` or ``Seq.ARRAY(Seq.INTEGER)``
    """
    base, first, second, is_array = parse_db_type(column.type)

    if column.enum_values:
        values = ", ".join(json.dumps(value) for value in column.enum_values)
        expression = f"{variable}.{SequelizeTypes.ENUM}({values})"
    else:
        sequelize_type = map_db_type_to_sequelize(base)
        length = column.length if column.length is not None else first
        precision = column.precision if column.precision is not None else first
        scale = column.scale if column.scale is not None else second

        if sequelize_type in LENGTH_TYPES and length is not None:
            expression = f"{variable}.{sequelize_type}({length})"
        elif sequelize_type in PRECISION_TYPES and precision is not None:
            if scale is not None:
                expression = f"{variable}.{sequelize_type}({precision}, {scale})"
            else:
                expression = f"{variable}.{sequelize_type}({precision})"
        else:
            expression = f"{variable}.{sequelize_type}"

    if is_array:
        expression = f"{variable}.{SequelizeTypes.ARRAY}({expression})"
    return Code(expression)
