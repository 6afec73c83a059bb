"""
Tests for the schema walker, including the shop end-to-end scenarios.
"""

import logging
from unittest import TestCase
from unittest.mock import patch

import pytest

from sequelize_model_generator.config import build_config
from sequelize_model_generator.domain.walker import describe_table, should_skip, walk
from sequelize_model_generator.exceptions import NamingCollisionError, UnsupportedSchemaError
from sequelize_model_generator.introspection import build_database


def describe_all(database, config):
    return {description.table_name: description for description in walk(database, config)}


def test_belongs_to_and_has_many_names(shop_database):
    descriptions = describe_all(shop_database, build_config())

    orders = descriptions["orders"]
    assert [rel["as"] for rel in orders.belongs_tos] == ["customer"]

    customers = descriptions["customers"]
    assert customers.has_manies[0]["as"] == "orders"
    assert customers.has_manies[0]["targetTable"] == "orders"


def test_junction_gives_belongs_to_many_both_ways(shop_database):
    descriptions = describe_all(shop_database, build_config())

    orders = descriptions["orders"]
    assert [rel["as"] for rel in orders.belongs_to_manies] == ["products"]
    assert orders.belongs_to_manies[0]["through"] == "order_products"

    products = descriptions["products"]
    assert [rel["as"] for rel in products.belongs_to_manies] == ["orders"]
    assert products.belongs_to_manies[0]["through"] == "order_products"

    # The junction table itself only has its two belongsTo relations
    junction = descriptions["order_products"]
    assert junction.association_names() == ["order", "product"]
    assert junction.model_name == "public.orderProducts"


def test_relation_order(shop_database):
    descriptions = describe_all(shop_database, build_config())
    assert descriptions["orders"].association_names() == ["orderProducts", "customer", "products"]
    assert descriptions["customers"].association_names() == ["orders", "auditLogs"]


def test_skip_listed_table_and_its_relations_are_omitted(shop_database):
    config = build_config({"generate": {"skipTable": ["audit_log"]}})
    descriptions = describe_all(shop_database, config)

    assert "audit_log" not in descriptions
    assert descriptions["customers"].association_names() == ["orders"]
    for description in descriptions.values():
        for relation in description.relations:
            assert relation["targetTable"] != "audit_log"


def test_skip_list_accepts_schema_qualified_names(shop_database):
    config = build_config({"generate": {"skipTable": ["public.audit_log"]}})
    assert "audit_log" not in describe_all(shop_database, config)


def test_skipped_junction_removes_many_to_many(shop_database):
    config = build_config({"generate": {"skipTable": ["order_products"]}})
    descriptions = describe_all(shop_database, config)

    assert descriptions["orders"].association_names() == ["customer"]
    assert descriptions["products"].association_names() == []


def test_skipped_far_side_removes_many_to_many(shop_database):
    config = build_config({"generate": {"skipTable": ["products"]}})
    descriptions = describe_all(shop_database, config)

    assert descriptions["orders"].association_names() == ["orderProducts", "customer"]
    assert descriptions["order_products"].association_names() == ["order"]


def test_has_many_through_collides_with_belongs_to_many(shop_database):
    config = build_config({"generate": {"hasManyThrough": True}})
    orders = shop_database.get_table("public", "orders")

    with pytest.raises(NamingCollisionError) as exc_info:
        describe_table(orders, config)
    assert exc_info.value.table == "orders"
    assert list(exc_info.value.collisions) == ["products"]


def test_has_many_through_without_belongs_to_many(shop_database):
    config = build_config({"generate": {"hasManyThrough": True, "belongsToMany": False}})
    orders = describe_table(shop_database.get_table("public", "orders"), config)

    assert orders.association_names() == ["orderProducts", "products", "customer"]
    assert orders.belongs_to_manies == []
    assert orders.get_relation("products")["through"] == "order_products"


def test_per_table_override_disables_belongs_to_many(shop_database):
    config = build_config({"generateOverride": {"orders": {"belongsToMany": False}}})
    descriptions = describe_all(shop_database, config)

    assert descriptions["orders"].belongs_to_manies == []
    assert [rel["as"] for rel in descriptions["products"].belongs_to_manies] == ["orders"]


def test_walk_is_deterministic(shop_database):
    config = build_config()
    first = [description.to_dict() for description in walk(shop_database, config)]
    second = [description.to_dict() for description in walk(shop_database, config)]
    assert first == second
    assert [item["table_name"] for item in first] == [
        "customers", "products", "orders", "order_products", "audit_log",
    ]


class TestShouldSkip(TestCase):

    def setUp(self):
        self.database = build_database({"schemas": [{"name": "sales", "tables": [
            {"name": "audit_log", "columns": [{"name": "id", "type": "integer"}]},
            {"name": "orders", "columns": [{"name": "id", "type": "integer"}]},
        ]}]})
        self.audit_log = self.database.get_table("sales", "audit_log")
        self.orders = self.database.get_table("sales", "orders")

    def test_matches_bare_and_qualified_names(self):
        for entry in ("audit_log", "sales.audit_log"):
            with self.subTest(entry=entry):
                config = build_config({"generate": {"skipTable": [entry]}})
                assert should_skip(self.audit_log, config)
                assert not should_skip(self.orders, config)

    def test_other_schema_does_not_match(self):
        config = build_config({"generate": {"skipTable": ["public.audit_log"]}})
        assert not should_skip(self.audit_log, config)

    def test_logs_skipped_table(self):
        config = build_config({"generate": {"skipTable": ["audit_log"]}})
        with self.assertLogs("sequelize_model_generator.domain.walker", level=logging.INFO) as logs:
            should_skip(self.audit_log, config)
        assert logs.output == [
            "INFO:sequelize_model_generator.domain.walker:(Skipped table) File "
            "'sales_audit_log.js' is skipped for model 'sales.auditLog'"
        ]

    def test_logs_skipped_relation(self):
        config = build_config({"generate": {"skipTable": ["audit_log"]}})
        with self.assertLogs("sequelize_model_generator.domain.walker", level=logging.INFO) as logs:
            should_skip(self.audit_log, config, "relation")
        assert "(Skipped relation) Relation is skipped for model 'sales.auditLog'" in logs.output[0]

    def test_no_log_when_output_log_is_off(self):
        config = build_config({"generate": {"skipTable": ["audit_log"]}, "output": {"log": False}})
        with patch("sequelize_model_generator.domain.walker.logger") as mock_logger:
            assert should_skip(self.audit_log, config)
        mock_logger.info.assert_not_called()


class TestDescribeTableErrors(TestCase):

    def test_composite_foreign_key_is_rejected(self):
        database = build_database({"schemas": [{"name": "public", "tables": [
            {"name": "parents", "columns": [
                {"name": "a", "type": "integer", "primaryKey": True},
                {"name": "b", "type": "integer", "primaryKey": True},
            ]},
            {"name": "children", "columns": [
                {"name": "id", "type": "integer", "primaryKey": True},
                {"name": "parent_a", "type": "integer"},
                {"name": "parent_b", "type": "integer"},
            ], "foreignKeys": [
                {"columns": ["parent_a", "parent_b"], "references": {"table": "parents"}},
            ]},
        ]}]})
        config = build_config()

        with self.assertRaises(UnsupportedSchemaError):
            describe_table(database.get_table("public", "children"), config)
        with self.assertRaises(UnsupportedSchemaError):
            describe_table(database.get_table("public", "parents"), config)

    def test_composite_key_on_skipped_table_is_ignored(self):
        database = build_database({"schemas": [{"name": "public", "tables": [
            {"name": "parents", "columns": [
                {"name": "a", "type": "integer", "primaryKey": True},
                {"name": "b", "type": "integer", "primaryKey": True},
            ]},
            {"name": "children", "columns": [
                {"name": "parent_a", "type": "integer"},
                {"name": "parent_b", "type": "integer"},
            ], "foreignKeys": [
                {"columns": ["parent_a", "parent_b"], "references": {"table": "parents"}},
            ]},
        ]}]})
        config = build_config({"generate": {"skipTable": ["children"]}})

        descriptions = list(walk(database, config))
        assert [description.table_name for description in descriptions] == ["parents"]
        assert descriptions[0].relations == []

    def test_relations_with_same_name_collide(self):
        # Two foreign keys named after the same target table
        database = build_database({"schemas": [{"name": "public", "tables": [
            {"name": "users", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
            {"name": "messages", "columns": [
                {"name": "id", "type": "integer", "primaryKey": True},
                {"name": "user_id", "type": "integer"},
                {"name": "user_ID", "type": "integer"},
                {"name": "body", "type": "text"},
            ], "foreignKeys": [
                {"columns": ["user_id"], "references": {"table": "users"}, "name": "sender"},
                {"columns": ["user_ID"], "references": {"table": "users"}, "name": "recipient"},
            ]},
        ]}]})
        with self.assertRaises(NamingCollisionError) as ctx:
            describe_table(database.get_table("public", "messages"), build_config())
        assert ctx.exception.collisions == {"user": ["belongsTo sender", "belongsTo recipient"]}


def test_foreign_keys_to_nouns_ending_in_s():
    database = build_database({"schemas": [{"name": "public", "tables": [
        {"name": "addresses", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
        {"name": "classes", "columns": [{"name": "id", "type": "integer", "primaryKey": True}]},
        {"name": "people", "columns": [
            {"name": "address_id", "type": "integer"},
            {"name": "class_id", "type": "integer"},
        ], "foreignKeys": [
            {"columns": ["address_id"], "references": {"table": "addresses"}},
            {"columns": ["class_id"], "references": {"table": "classes"}},
        ]},
    ]}]})
    descriptions = describe_all(database, build_config())

    assert [rel["as"] for rel in descriptions["people"].belongs_tos] == ["address", "class"]
    assert [rel["as"] for rel in descriptions["classes"].belongs_to_manies] == ["addresses"]
    assert [rel["as"] for rel in descriptions["addresses"].belongs_to_manies] == ["classes"]
