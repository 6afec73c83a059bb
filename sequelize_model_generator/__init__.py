"""Generate Sequelize model definitions from relational schema metadata."""

__version__ = "0.1.0"
