"""
Core output models for the Sequelize model generator.

These models carry the result of mapping one table: plain, typed data that the
template renderer consumes. Literal quoting is applied only when a template
context is requested, so the computed values stay usable by other consumers.
"""

import json
from dataclasses import dataclass, field
from typing import List, Dict, Any, Mapping, Optional


class Code(str):
    """
    A string holding target-language source, such as ``Seq.STRING(50)``.

    Never quoted by attribute filtering; it is emitted into the template as is.
    """

    __slots__ = ()


class Quoted(str):
    """A string that is already a quoted JavaScript string literal."""

    __slots__ = ()


def quote(value: str) -> Quoted:
    """Wrap a plain string as a JavaScript string literal."""
    if isinstance(value, Quoted):
        return value
    return Quoted(json.dumps(str(value)))


def filter_attributes(obj: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Prepare a description object for rendering.

    - Drops entries whose value is None
    - Quotes string values as JavaScript literals, except Code values

    The result is a new dict. Filtering an already filtered object returns an
    equal object, since Quoted values are never quoted twice.
    """
    result: Dict[str, Any] = {}
    for key, value in obj.items():
        if value is None:
            continue
        if isinstance(value, str) and not isinstance(value, (Code, Quoted)):
            value = quote(value)
        result[key] = value
    return result


@dataclass
class ModelDescription:
    """
    Everything needed to render the model definition of a single table.

    Created fresh for each table in a generation run and handed to the
    renderer immediately.
    """

    # Identity
    table_name: str
    schema: str
    model_name: str
    file_name: str
    base_file_name: str

    # Table level options, already merged by precedence
    table_options: Dict[str, Any] = field(default_factory=dict)

    # Attribute and association descriptions
    columns: List[Dict[str, Any]] = field(default_factory=list)
    has_manies: List[Dict[str, Any]] = field(default_factory=list)
    belongs_tos: List[Dict[str, Any]] = field(default_factory=list)
    belongs_to_manies: List[Dict[str, Any]] = field(default_factory=list)
    relations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        """Schema qualified table name."""
        return f"{self.schema}.{self.table_name}"

    def association_names(self) -> List[str]:
        """Association names of all relations in relation order."""
        return [relation["as"] for relation in self.relations]

    def get_relation(self, name: str) -> Optional[Dict[str, Any]]:
        """Get a relation description by its association name."""
        for relation in self.relations:
            if relation["as"] == name:
                return relation
        return None

    def to_template_context(self) -> Dict[str, Any]:
        """Convert to the filtered, quoted representation used by templates."""
        table = filter_attributes(self.table_options)
        table["defineOptions"] = {
            key: value for key, value in table.items() if key != "modelName"
        }
        table["baseFileName"] = self.base_file_name
        table["fileName"] = self.file_name
        table["columns"] = [filter_attributes(column) for column in self.columns]
        table["hasManies"] = [filter_attributes(rel) for rel in self.has_manies]
        table["belongsTos"] = [filter_attributes(rel) for rel in self.belongs_tos]
        table["belongsToManies"] = [filter_attributes(rel) for rel in self.belongs_to_manies]
        table["relations"] = [filter_attributes(rel) for rel in self.relations]
        return table

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'table_name': self.table_name,
            'schema': self.schema,
            'model_name': self.model_name,
            'file_name': self.file_name,
            'base_file_name': self.base_file_name,
            'table_options': dict(self.table_options),
            'columns': [dict(column) for column in self.columns],
            'has_manies': [dict(rel) for rel in self.has_manies],
            'belongs_tos': [dict(rel) for rel in self.belongs_tos],
            'belongs_to_manies': [dict(rel) for rel in self.belongs_to_manies],
            'relations': [dict(rel) for rel in self.relations],
        }
