"""
Tests for snapshot loading and schema graph construction.
"""

import json
from unittest import TestCase

import pytest

from sequelize_model_generator.config import build_config
from sequelize_model_generator.domain.schema import JunctionRelation
from sequelize_model_generator.exceptions import SchemaIntrospectionError
from sequelize_model_generator.introspection import (
    SnapshotIntrospector,
    build_database,
    load_snapshot,
)


class TestBuildDatabase(TestCase):

    def two_schemas(self):
        return {"schemas": [
            {"name": "public", "tables": [
                {"name": "customers", "columns": [
                    {"name": "id", "type": "integer", "primaryKey": True},
                ]},
            ]},
            {"name": "sales", "tables": [
                {"name": "orders", "columns": [
                    {"name": "id", "type": "integer", "primaryKey": True},
                    {"name": "customer_id", "type": "integer"},
                ], "foreignKeys": [
                    {"columns": "customer_id",
                     "references": {"table": "customers", "schema": "public"},
                     "onDelete": "SET NULL"},
                ]},
            ]},
        ]}

    def test_links_constraints_both_ways(self):
        database = build_database(self.two_schemas())
        orders = database.get_table("sales", "orders")
        customers = database.get_table("public", "customers")

        constraint = orders.foreign_key_constraints[0]
        assert constraint.name == "customers_orders"
        assert constraint.referenced_table is customers
        assert constraint.referenced_columns == ("id",)
        assert customers.has_manies == (constraint,)

        column = orders.get_column("customer_id")
        assert column.foreign_key_constraint is constraint
        assert column.on_delete == "SET NULL"
        assert column.on_update is None
        assert column.table is orders
        assert orders.schema.name == "sales"

    def test_graph_is_read_only(self):
        database = build_database(self.two_schemas())
        orders = database.get_table("sales", "orders")
        with self.assertRaises(AttributeError):
            orders.name = "renamed"
        with self.assertRaises(AttributeError):
            orders.columns[0].allow_null = False

    def test_restrict_keeps_cross_schema_references(self):
        database = build_database(self.two_schemas()).restrict(["sales"])
        assert [schema.name for schema in database.schemas] == ["sales"]
        orders = database.get_table("sales", "orders")
        assert orders.foreign_key_constraints[0].referenced_table.name == "customers"

    def test_junction_requires_exactly_two_foreign_keys(self):
        fk = lambda column, target: {"columns": [column], "references": {"table": target}}
        database = build_database({"schemas": [{"name": "public", "tables": [
            {"name": "a", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
            {"name": "b", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
            {"name": "c", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
            {"name": "a_b", "columns": [
                {"name": "a_id", "type": "integer"}, {"name": "b_id", "type": "integer"},
            ], "foreignKeys": [fk("a_id", "a"), fk("b_id", "b")]},
            {"name": "a_b_c", "columns": [
                {"name": "a_id", "type": "integer"}, {"name": "b_id", "type": "integer"},
                {"name": "c_id", "type": "integer"},
            ], "foreignKeys": [fk("a_id", "a"), fk("b_id", "b"), fk("c_id", "c")]},
        ]}]})

        a = database.get_table("public", "a")
        assert [junction.through.name for junction in a.has_many_throughs] == ["a_b"]
        assert isinstance(a.has_many_throughs[0], JunctionRelation)
        assert database.get_table("public", "c").has_many_throughs == ()

    def test_not_a_junction_is_not_a_junction_relation(self):
        database = build_database(self.two_schemas())
        constraint = database.get_table("sales", "orders").foreign_key_constraints[0]
        assert not isinstance(constraint, JunctionRelation)

    def test_unknown_referenced_table(self):
        data = self.two_schemas()
        data["schemas"][1]["tables"][0]["foreignKeys"][0]["references"] = {"table": "missing"}
        with self.assertRaises(SchemaIntrospectionError) as ctx:
            build_database(data)
        assert "sales.missing" in str(ctx.exception)

    def test_unknown_column(self):
        data = self.two_schemas()
        data["schemas"][1]["tables"][0]["foreignKeys"][0]["columns"] = ["customer"]
        with self.assertRaises(SchemaIntrospectionError) as ctx:
            build_database(data)
        assert ctx.exception.context["column"] == "customer"

    def test_duplicate_table(self):
        data = self.two_schemas()
        data["schemas"][0]["tables"].append({"name": "customers", "columns": []})
        with self.assertRaises(SchemaIntrospectionError):
            build_database(data)

    def test_invalid_snapshot_shape(self):
        with self.assertRaises(SchemaIntrospectionError):
            build_database({"schemas": [{"tables": []}]})
        with self.assertRaises(SchemaIntrospectionError):
            build_database({"schemas": [{"name": "public", "tables": [
                {"name": "t", "columns": [{"name": "id", "type": "integer", "nullable": True}]},
            ]}]})

    def test_non_string_defaults_are_kept_as_text(self):
        database = build_database({"schemas": [{"name": "public", "tables": [
            {"name": "t", "columns": [
                {"name": "n", "type": "integer", "default": 0},
                {"name": "b", "type": "boolean", "default": False},
            ]},
        ]}]})
        table = database.get_table("public", "t")
        assert table.get_column("n").default == "0"
        assert table.get_column("b").default == "false"


def test_load_snapshot_yaml(shop_snapshot_path):
    data = load_snapshot(shop_snapshot_path)
    assert [table["name"] for table in data["schemas"][0]["tables"]] == [
        "customers", "products", "orders", "order_products", "audit_log",
    ]


def test_load_snapshot_json(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps({"schemas": [{"name": "public", "tables": []}]}), encoding="utf-8")
    assert load_snapshot(path) == {"schemas": [{"name": "public", "tables": []}]}


def test_load_snapshot_errors(tmp_path):
    with pytest.raises(SchemaIntrospectionError):
        load_snapshot(tmp_path / "missing.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("schemas: [", encoding="utf-8")
    with pytest.raises(SchemaIntrospectionError):
        load_snapshot(broken)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just text", encoding="utf-8")
    with pytest.raises(SchemaIntrospectionError):
        load_snapshot(scalar)


def test_snapshot_introspector_filters_schemas(shop_snapshot_path, caplog):
    config = build_config({"database": {
        "snapshot": str(shop_snapshot_path),
        "schema": ["public", "reporting"],
    }})

    database = SnapshotIntrospector().introspect(config)

    assert [schema.name for schema in database.schemas] == ["public"]
    assert "Schema 'reporting' not found" in caplog.text


def test_snapshot_introspector_required_keys():
    assert SnapshotIntrospector.required_config_keys == ("database.snapshot",)
