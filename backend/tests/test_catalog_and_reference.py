"""
Category tree and reference table tests: case-insensitive uniqueness and
delete guards.
"""

import pytest

from medstock.models import Item, InventoryMovement
from medstock.services import catalog_service, reference_service
from medstock.validation import ValidationError, NotFoundError, ConflictError, DuplicateNameError


@pytest.fixture
def tree(db_session):
    computers = catalog_service.create_main_category({"name": "Computers"})
    desktops = catalog_service.create_sub_category({"name": "Desktop", "cat_id": computers.id})
    dell = catalog_service.create_item_type({"name": "Dell OptiPlex", "sub_cat_id": desktops.id})
    return computers, desktops, dell


class TestMainCategories:

    def test_create_trims_name(self, db_session):
        cat = catalog_service.create_main_category({"name": "  Medical devices ", "description": " "})
        assert cat.name == "Medical devices"
        assert cat.description is None

    @pytest.mark.parametrize("name", ["Computers", "computers", "COMPUTERS "])
    def test_duplicate_name_case_insensitive(self, tree, name):
        with pytest.raises(DuplicateNameError):
            catalog_service.create_main_category({"name": name})

    @pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "   "}, {"name": 12}])
    def test_name_required(self, db_session, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_main_category(payload)

    def test_rename_to_own_name_in_other_case(self, tree):
        computers, _, _ = tree
        updated = catalog_service.update_main_category(computers.id, {"name": "COMPUTERS"})
        assert updated.name == "COMPUTERS"

    def test_delete_with_children_conflicts(self, tree):
        computers, _, _ = tree
        with pytest.raises(ConflictError):
            catalog_service.delete_main_category(computers.id)

    def test_delete_empty(self, db_session):
        cat = catalog_service.create_main_category({"name": "Furniture"})
        catalog_service.delete_main_category(cat.id)
        with pytest.raises(NotFoundError):
            catalog_service.get_main_category(cat.id)


class TestSubCategoriesAndItemTypes:

    def test_same_sub_name_allowed_under_other_parent(self, tree):
        _, desktops, _ = tree
        furniture = catalog_service.create_main_category({"name": "Furniture"})

        other = catalog_service.create_sub_category({"name": "desktop", "cat_id": furniture.id})

        assert other.cat_id == furniture.id
        assert other.id != desktops.id

    def test_duplicate_sub_name_within_parent(self, tree):
        computers, _, _ = tree
        with pytest.raises(DuplicateNameError):
            catalog_service.create_sub_category({"name": "DESKTOP", "cat_id": computers.id})

    def test_sub_requires_existing_parent(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.create_sub_category({"name": "Laptop", "cat_id": 999})
        with pytest.raises(ValidationError):
            catalog_service.create_sub_category({"name": "Laptop"})

    def test_duplicate_item_type_within_sub(self, tree):
        _, desktops, _ = tree
        with pytest.raises(DuplicateNameError):
            catalog_service.create_item_type({"name": "dell optiplex", "sub_cat_id": desktops.id})

    def test_moving_sub_into_parent_with_same_name_conflicts(self, tree):
        computers, _, _ = tree
        furniture = catalog_service.create_main_category({"name": "Furniture"})
        moved = catalog_service.create_sub_category({"name": "Desktop", "cat_id": furniture.id})

        with pytest.raises(DuplicateNameError):
            catalog_service.update_sub_category(moved.id, {"cat_id": computers.id})

    def test_delete_sub_with_item_types_conflicts(self, tree):
        _, desktops, _ = tree
        with pytest.raises(ConflictError):
            catalog_service.delete_sub_category(desktops.id)

    def test_delete_item_type_in_use_conflicts(self, db_session, tree):
        _, desktops, dell = tree
        db_session.add(Item(name="PC-01", sub_cat_id=desktops.id, item_type_id=dell.id))
        db_session.commit()

        with pytest.raises(ConflictError):
            catalog_service.delete_item_type(dell.id)

    def test_list_filters_by_parent(self, tree):
        computers, desktops, _ = tree
        catalog_service.create_sub_category({"name": "Laptop", "cat_id": computers.id})

        assert [s.name for s in catalog_service.list_sub_categories(cat_id=computers.id)] == ["Desktop", "Laptop"]
        assert len(catalog_service.list_item_types(sub_cat_id=desktops.id)) == 1


class TestReferenceEntries:

    @pytest.mark.parametrize("kind", ["department", "rank", "floor"])
    def test_crud(self, db_session, kind):
        entry = reference_service.create_entry(kind, {"name": "First"})
        reference_service.update_entry(kind, entry.id, {"name": "Second"})

        assert [e.name for e in reference_service.list_entries(kind)] == ["Second"]

        reference_service.delete_entry(kind, entry.id)
        assert reference_service.list_entries(kind) == []

    @pytest.mark.parametrize("kind", ["department", "rank", "floor"])
    def test_duplicate_name_case_insensitive(self, db_session, kind):
        reference_service.create_entry(kind, {"name": "Radiology"})
        with pytest.raises(DuplicateNameError):
            reference_service.create_entry(kind, {"name": "radiology"})

    def test_update_to_other_entry_name_conflicts(self, db_session):
        reference_service.create_entry("floor", {"name": "Ground floor"})
        second = reference_service.create_entry("floor", {"name": "First floor"})
        with pytest.raises(DuplicateNameError):
            reference_service.update_entry("floor", second.id, {"name": "GROUND FLOOR"})

    def test_missing_entry(self, db_session):
        with pytest.raises(NotFoundError):
            reference_service.get_entry("rank", 12345)

    def test_department_referenced_by_item(self, db_session):
        dept = reference_service.create_entry("department", {"name": "Emergency"})
        db_session.add(Item(name="Defibrillator", dept_id=dept.id))
        db_session.commit()

        with pytest.raises(ConflictError):
            reference_service.delete_entry("department", dept.id)

    def test_floor_referenced_by_movement(self, db_session, item, add):
        floor = reference_service.create_entry("floor", {"name": "Third floor"})
        movement, _ = add("IN", item, 1, to_floor_id=floor.id)
        assert db_session.get(InventoryMovement, movement.id).to_floor_id == floor.id

        with pytest.raises(ConflictError):
            reference_service.delete_entry("floor", floor.id)

    def test_rank_referenced_by_user(self, db_session, make_user):
        rank = reference_service.create_entry("rank", {"name": "Head nurse"})
        user = make_user("nurse")
        user.rank_id = rank.id
        db_session.commit()

        with pytest.raises(ConflictError):
            reference_service.delete_entry("rank", rank.id)
