"""
Item service and dashboard statistics tests.
"""

import pytest

from medstock.models import InventoryMovement
from medstock.services import item_service, catalog_service, reference_service, statistics_service
from medstock.validation import ValidationError, NotFoundError


@pytest.fixture
def catalog(db_session):
    computers = catalog_service.create_main_category({"name": "Computers"})
    desktops = catalog_service.create_sub_category({"name": "Desktop", "cat_id": computers.id})
    laptops = catalog_service.create_sub_category({"name": "Laptop", "cat_id": computers.id})
    dell = catalog_service.create_item_type({"name": "Dell", "sub_cat_id": desktops.id})
    radiology = reference_service.create_entry("department", {"name": "Radiology"})
    return {"main": computers, "desktops": desktops, "laptops": laptops, "dell": dell, "dept": radiology}


class TestItemService:

    def test_create_starts_at_zero_with_default_unit(self, catalog):
        item = item_service.create_item({"name": "PC-01", "sub_cat_id": catalog["desktops"].id})
        assert item.quantity == 0
        assert item.unit == "piece"

    def test_quantity_not_writable(self, catalog):
        with pytest.raises(ValidationError):
            item_service.create_item({"name": "PC-01", "quantity": 50})

        item = item_service.create_item({"name": "PC-01"})
        with pytest.raises(ValidationError):
            item_service.update_item(item.id, {"quantity": 50})

    def test_item_type_must_belong_to_sub_category(self, catalog):
        with pytest.raises(ValidationError):
            item_service.create_item({
                "name": "PC-02",
                "sub_cat_id": catalog["laptops"].id,
                "item_type_id": catalog["dell"].id,
            })

    def test_update_item_type_checked_against_current_sub_category(self, catalog):
        item = item_service.create_item({"name": "PC-03", "sub_cat_id": catalog["laptops"].id})
        with pytest.raises(ValidationError):
            item_service.update_item(item.id, {"item_type_id": catalog["dell"].id})

    def test_unknown_reference(self, catalog):
        with pytest.raises(NotFoundError):
            item_service.create_item({"name": "PC-04", "dept_id": 999})

    def test_negative_min_quantity(self, catalog):
        with pytest.raises(ValidationError):
            item_service.create_item({"name": "Gloves", "min_quantity": -1})

    def test_list_filters(self, catalog, admin_user):
        item_service.create_item({"name": "Desk PC", "sub_cat_id": catalog["desktops"].id, "ip": "10.0.0.5"})
        item_service.create_item({"name": "Laptop A", "sub_cat_id": catalog["laptops"].id, "user_id": admin_user.id})
        item_service.create_item({"name": "Scanner", "dept_id": catalog["dept"].id})

        assert [i.name for i in item_service.list_items({"cat_id": catalog["main"].id})] == ["Desk PC", "Laptop A"]
        assert [i.name for i in item_service.list_items({"user_id": "warehouse"})] == ["Desk PC", "Scanner"]
        assert [i.name for i in item_service.list_items({"user_id": "0"})] == ["Desk PC", "Scanner"]
        assert [i.name for i in item_service.list_items({"user_id": str(admin_user.id)})] == ["Laptop A"]
        assert [i.name for i in item_service.list_items({"ip": "10.0"})] == ["Desk PC"]
        assert [i.name for i in item_service.list_items({"name": "SCAN"})] == ["Scanner"]

    def test_delete_removes_movements(self, db_session, item, add):
        add("IN", item, 3)
        item_service.delete_item(item.id)

        assert db_session.query(InventoryMovement).count() == 0
        with pytest.raises(NotFoundError):
            item_service.get_item(item.id)


class TestStatistics:

    def test_empty_database(self, db_session, seed):
        stats = statistics_service.get_statistics()

        assert stats["total_items"] == {"total_count": 0}
        assert stats["stock"]["total_quantity"] == 0
        assert stats["movements"]["total_movements"] == 0
        assert stats["low_stock_items"] == []
        assert len(stats["movement_types"]) == 6

    def test_counts_and_stock(self, catalog, admin_user, add):
        pc = item_service.create_item({
            "name": "PC", "sub_cat_id": catalog["desktops"].id, "item_type_id": catalog["dell"].id,
            "situation": "in use", "kind": "device",
        })
        gloves = item_service.create_item({"name": "Gloves", "min_quantity": 10, "dept_id": catalog["dept"].id})
        item_service.create_item({"name": "Chair", "user_id": admin_user.id})

        add("IN", pc, 2)
        add("IN", gloves, 12)
        add("OUT", gloves, 5)

        stats = statistics_service.get_statistics()

        assert stats["total_items"]["total_count"] == 3
        assert stats["warehouse"]["item_count"] == 2
        assert stats["stock"] == {
            "total_items": 3,
            "total_quantity": 9,
            "low_stock_count": 1,
            "out_of_stock_count": 1,
            "in_stock_count": 1,
        }
        assert stats["movements"] == {
            "total_movements": 3,
            "total_in": 14,
            "total_out": 5,
            "items_with_movements": 2,
            "users_with_movements": 1,
        }

        low = stats["low_stock_items"]
        assert [(row["item_name"], row["shortage"]) for row in low] == [("Gloves", 3)]
        assert low[0]["dept_name"] == "Radiology"

        main = {row["cat_name"]: row["item_count"] for row in stats["main_categories"]}
        assert main == {"Computers": 1}
        subs = {row["sub_cat_name"]: row["item_count"] for row in stats["sub_categories"]}
        assert subs == {"Desktop": 1, "Laptop": 0}
        assert stats["item_types"][0]["item_count"] == 1
        assert stats["situations"] == [{"situation": "in use", "item_count": 1}]

        by_type = {row["type_code"]: row["movement_count"] for row in stats["movement_types"]}
        assert by_type["IN"] == 2
        assert by_type["OUT"] == 1
        assert by_type["ADJUSTMENT"] == 0
