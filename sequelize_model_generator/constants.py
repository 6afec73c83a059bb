"""
Centralized constants for the Sequelize model generator.

This module holds the default configuration tree, the database type to
Sequelize data type mappings and the output layout, so behavior can be tuned
in one place.
"""

from pathlib import Path
from typing import Dict, Any, Tuple


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

PACKAGE_DIR = Path(__file__).parent
TEMPLATE_DIR = PACKAGE_DIR / "templates"


class DefaultConfig:
    """Default configuration values."""

    # Database defaults
    DATABASE_PORT = 5432
    DATABASE_SCHEMAS = ["public"]

    # Template defaults
    TEMPLATE_NAME = "model.js.j2"

    # Output defaults
    OUTPUT_FOLDER = "./model"
    OUTPUT_INDENT = 4
    OUTPUT_CONCURRENCY = 4

    # Generation defaults
    PREFIX_FOR_BELONGS_TO = "related"
    DATA_TYPE_VARIABLE = "Seq"


# The full default configuration tree. User config files and CLI options are
# deep-merged over this, later sources winning.
DEFAULT_CONFIG: Dict[str, Any] = {
    "database": {
        "host": None,
        "port": DefaultConfig.DATABASE_PORT,
        "user": None,
        "password": None,
        "database": None,
        "schema": list(DefaultConfig.DATABASE_SCHEMAS),
        "snapshot": None,
    },
    "template": {
        "folder": None,
        "name": DefaultConfig.TEMPLATE_NAME,
    },
    "output": {
        "log": True,
        "folder": DefaultConfig.OUTPUT_FOLDER,
        "beautify": True,
        "indent": DefaultConfig.OUTPUT_INDENT,
        "preserveNewLines": False,
        "warning": True,
        "concurrency": DefaultConfig.OUTPUT_CONCURRENCY,
    },
    "generate": {
        "stripFirstTableFromHasMany": True,
        "hasManyThrough": False,
        "belongsToMany": True,
        "prefixForBelongsTo": DefaultConfig.PREFIX_FOR_BELONGS_TO,
        "useSchemaName": True,
        "modelCamelCase": True,
        "relationAccessorCamelCase": True,
        "columnAccessorCamelCase": True,
        "columnDefault": True,
        "columnDescription": True,
        "columnAutoIncrement": True,
        "tableDescription": True,
        "dataTypeVariable": DefaultConfig.DATA_TYPE_VARIABLE,
        "skipTable": [],
    },
    "generateOverride": {},
    "tableOptions": {
        "timestamps": False,
    },
    "tableOptionsOverride": {},
}

# Suffix appended to the first key segment to find per-table overrides,
# e.g. generate.columnDefault -> generateOverride.<table>.columnDefault
OVERRIDE_SUFFIX = "Override"

# Shown instead of secrets when the configuration is logged
MASKED_VALUE = "********"

# Command line options and the config paths they override.
CLI_OPTION_PATHS: Dict[str, Tuple[str, ...]] = {
    "host": ("database", "host"),
    "port": ("database", "port"),
    "database": ("database", "database"),
    "user": ("database", "user"),
    "password": ("database", "password"),
    "schema": ("database", "schema"),
    "schema_file": ("database", "snapshot"),
    "output": ("output", "folder"),
}


# =============================================================================
# OUTPUT LAYOUT
# =============================================================================

class OutputPaths:
    """Folder and file names created under output.folder."""

    DEFINITION_DIR = "definition-files"
    CUSTOM_DIR = "definition-files-custom"
    DO_NOT_EDIT_MARKER = "_Dont_add_or_edit_any_files"

    # Model loader files copied from the template folder
    UTILITY_FILES = ("index.js", "utils.js")


class FileExtensions:
    """Common file extensions."""

    JAVASCRIPT = ".js"
    YAML = ".yaml"
    YML = ".yml"
    JSON = ".json"
    JINJA2 = ".j2"


# =============================================================================
# DATA TYPE MAPPINGS
# =============================================================================

class SequelizeTypes:
    """Sequelize DataTypes member names."""

    STRING = "STRING"
    CHAR = "CHAR"
    TEXT = "TEXT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    SMALLINT = "SMALLINT"
    REAL = "REAL"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATEONLY = "DATEONLY"
    TIME = "TIME"
    UUID = "UUID"
    JSON = "JSON"
    JSONB = "JSONB"
    BLOB = "BLOB"
    ENUM = "ENUM"
    ARRAY = "ARRAY"
    INET = "INET"
    CIDR = "CIDR"
    MACADDR = "MACADDR"
    HSTORE = "HSTORE"
    TSVECTOR = "TSVECTOR"
    GEOMETRY = "GEOMETRY"
    GEOGRAPHY = "GEOGRAPHY"


# Database type name (lower case) to Sequelize data type
SEQUELIZE_TYPE_MAP: Dict[str, str] = {
    # Integers
    "smallint": SequelizeTypes.SMALLINT,
    "int2": SequelizeTypes.SMALLINT,
    "smallserial": SequelizeTypes.SMALLINT,
    "integer": SequelizeTypes.INTEGER,
    "int": SequelizeTypes.INTEGER,
    "int4": SequelizeTypes.INTEGER,
    "serial": SequelizeTypes.INTEGER,
    "bigint": SequelizeTypes.BIGINT,
    "int8": SequelizeTypes.BIGINT,
    "bigserial": SequelizeTypes.BIGINT,

    # Floating point and exact numerics
    "real": SequelizeTypes.REAL,
    "float4": SequelizeTypes.REAL,
    "double precision": SequelizeTypes.DOUBLE,
    "float8": SequelizeTypes.DOUBLE,
    "float": SequelizeTypes.FLOAT,
    "numeric": SequelizeTypes.DECIMAL,
    "decimal": SequelizeTypes.DECIMAL,
    "money": SequelizeTypes.DECIMAL,

    # Strings
    "character varying": SequelizeTypes.STRING,
    "varchar": SequelizeTypes.STRING,
    "character": SequelizeTypes.CHAR,
    "char": SequelizeTypes.CHAR,
    "bpchar": SequelizeTypes.CHAR,
    "text": SequelizeTypes.TEXT,
    "citext": SequelizeTypes.TEXT,

    # Date and time
    "date": SequelizeTypes.DATEONLY,
    "timestamp": SequelizeTypes.DATE,
    "timestamp without time zone": SequelizeTypes.DATE,
    "timestamp with time zone": SequelizeTypes.DATE,
    "timestamptz": SequelizeTypes.DATE,
    "time": SequelizeTypes.TIME,
    "time without time zone": SequelizeTypes.TIME,
    "time with time zone": SequelizeTypes.TIME,
    "timetz": SequelizeTypes.TIME,

    # Other
    "boolean": SequelizeTypes.BOOLEAN,
    "bool": SequelizeTypes.BOOLEAN,
    "uuid": SequelizeTypes.UUID,
    "json": SequelizeTypes.JSON,
    "jsonb": SequelizeTypes.JSONB,
    "bytea": SequelizeTypes.BLOB,
    "inet": SequelizeTypes.INET,
    "cidr": SequelizeTypes.CIDR,
    "macaddr": SequelizeTypes.MACADDR,
    "hstore": SequelizeTypes.HSTORE,
    "tsvector": SequelizeTypes.TSVECTOR,
    "geometry": SequelizeTypes.GEOMETRY,
    "geography": SequelizeTypes.GEOGRAPHY,
}

# Types that accept a length argument, e.g. STRING(50)
LENGTH_TYPES = {SequelizeTypes.STRING, SequelizeTypes.CHAR}

# Types that accept precision and scale, e.g. DECIMAL(10, 2)
PRECISION_TYPES = {SequelizeTypes.DECIMAL}

FALLBACK_TYPE = SequelizeTypes.TEXT


# =============================================================================
# NAMING CONVENTIONS
# =============================================================================

# Irregular nouns looked up before the inflect engine's built-in rules.
# Keeps singular/plural forms stable for common schema vocabulary.
IRREGULAR_NOUNS: Dict[str, str] = {
    "status": "statuses",
    "data": "data",
    "metadata": "metadata",
    "media": "media",
    "criterion": "criteria",
    "schema": "schemas",
    "alias": "aliases",
}

# Nouns with no separate plural form
UNCOUNTABLE_NOUNS = frozenset({
    "equipment",
    "information",
    "feedback",
    "software",
    "money",
    "rice",
    "news",
    "series",
    "species",
    "sheep",
    "fish",
    "police",
})

# Endings of singular nouns that inflect would otherwise strip, e.g. address, campus, analysis
SINGULAR_ENDINGS = ("ss", "us", "is")

# Suffix identifying a foreign key column named after its target, e.g. company_id
FOREIGN_KEY_SUFFIX = "_id"

# Marks relation and column descriptions produced by this tool
DESCRIPTION_SOURCE = "generator"


class RelationTypes:
    """Association type tags emitted in relation descriptions."""

    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    BELONGS_TO_MANY = "belongsToMany"
