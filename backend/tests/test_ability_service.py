"""
Ability engine tests. Pure: no app or database needed except for the
resolve_ability round-trip at the bottom.
"""

from types import SimpleNamespace

import pytest

from medstock.services.ability_service import (
    Action,
    Subject,
    PermissionRow,
    AbilityDeniedError,
    GUEST_USER_ID,
    compile_ability,
    guest_ability,
    resolve_ability,
    parse_subject,
    parse_action,
    can,
)


def rows(*entries):
    """rows(("ITEMS", "READ"), ("ITEMS", "UPDATE", "quantity"), ...)"""
    out = []
    for entry in entries:
        subject, action, *rest = entry
        field_name = rest[0] if len(rest) > 0 else None
        can_access = rest[1] if len(rest) > 1 else True
        out.append(PermissionRow(subject=subject, action=action, field_name=field_name, can_access=can_access))
    return out


class FakeRepo:
    def __init__(self, user=None, permission_rows=()):
        self.user = user
        self.permission_rows = list(permission_rows)
        self.calls = []

    def get_role_rules(self, user_id):
        self.calls.append(user_id)
        if self.user is None:
            return None, []
        return self.user, self.permission_rows


class TestTokens:

    @pytest.mark.parametrize("token,expected", [
        ("ITEMS", Subject.ITEM),
        ("item", Subject.ITEM),
        ("Item", Subject.ITEM),
        ("  users ", Subject.USER),
        ("CATEGORIES", Subject.CATEGORY),
        ("STATISTICS", Subject.STATISTICS),
        ("all", Subject.ALL),
        (Subject.FLOOR, Subject.FLOOR),
        ("WIDGETS", None),
        (None, None),
    ])
    def test_parse_subject(self, token, expected):
        assert parse_subject(token) is expected

    @pytest.mark.parametrize("token,expected", [
        ("READ", Action.READ),
        ("read", Action.READ),
        ("Manage", Action.MANAGE),
        (Action.DELETE, Action.DELETE),
        ("APPROVE", None),
        (3, None),
    ])
    def test_parse_action(self, token, expected):
        assert parse_action(token) is expected


class TestCompileAbility:

    def test_universal_rule_allows_everything(self):
        ability = compile_ability(rows(("ALL", "MANAGE")), role_id=1)

        assert not ability.is_guest
        for subject in Subject:
            for action in Action:
                assert ability.can(action, subject)
        assert ability.can("update", "Item", "quantity")

    def test_manage_on_subject_implies_every_action(self):
        ability = compile_ability(rows(("USERS", "MANAGE")))

        assert ability.can("delete", "User")
        assert ability.can("create", "User")
        assert not ability.can("read", "Item")

    def test_can_access_false_is_dropped(self):
        ability = compile_ability(rows(
            ("ITEMS", "READ"),
            ("ITEMS", "DELETE", None, False),
        ))

        assert ability.can("read", "Item")
        assert not ability.can("delete", "Item")

    def test_everything_denied_falls_back_to_guest(self):
        ability = compile_ability(rows(("ALL", "MANAGE", None, False)), role_id=7)

        assert ability.is_guest
        assert ability.role_id == 7
        assert ability.can("read", "Item")
        assert not ability.can("update", "Item")

    def test_no_rows_gives_guest(self):
        ability = compile_ability([])
        assert ability.is_guest
        assert ability.rules == guest_ability().rules

    def test_unknown_tokens_are_skipped(self):
        ability = compile_ability(rows(
            ("WIDGETS", "READ"),
            ("ITEMS", "APPROVE"),
            ("ITEMS", "READ"),
        ))

        assert not ability.is_guest
        assert len(ability.rules) == 1
        assert len(ability.skipped) == 2
        assert "WIDGETS" in ability.skipped[0].reason

    def test_only_unknown_tokens_gives_guest_with_skipped(self):
        ability = compile_ability(rows(("WIDGETS", "READ")))
        assert ability.is_guest
        assert len(ability.skipped) == 1

    def test_plural_and_singular_rows_are_equivalent(self):
        plural = compile_ability(rows(("DEPARTMENTS", "CREATE")))
        singular = compile_ability(rows(("department", "create")))
        assert plural.rules == singular.rules

    def test_accepts_orm_like_rows(self):
        orm_row = SimpleNamespace(subject="FLOORS", action="UPDATE", field_name="", can_access=True)
        ability = compile_ability([orm_row])
        assert ability.can("update", "Floor")
        assert ability.rules[0].field is None

    def test_to_dict(self):
        ability = compile_ability(rows(("ITEMS", "UPDATE", "quantity")), role_id=3)
        assert ability.to_dict() == {
            "role_id": 3,
            "is_guest": False,
            "rules": [{"action": "update", "subject": "Item", "field": "quantity"}],
        }


class TestFieldScope:

    @pytest.fixture
    def scoped(self):
        return compile_ability(rows(("ITEMS", "UPDATE", "quantity")))

    def test_field_scoped_rule_matches_same_field(self, scoped):
        assert scoped.can("update", "Item", "quantity")

    def test_field_scoped_rule_rejects_other_field(self, scoped):
        assert not scoped.can("update", "Item", "name")

    def test_query_without_field_is_satisfied_by_scoped_rule(self, scoped):
        assert scoped.can("update", "Item")

    def test_unscoped_rule_covers_any_field(self):
        ability = compile_ability(rows(("ITEMS", "UPDATE")))
        assert ability.can("update", "Item", "quantity")
        assert ability.can("update", "Item", "serial")

    def test_blank_field_query_is_unscoped(self, scoped):
        assert scoped.can("update", "Item", "   ")


class TestCan:

    def test_unknown_query_tokens_are_denied(self):
        ability = compile_ability(rows(("ALL", "MANAGE")))
        assert not can(ability, "approve", "Item")
        assert not can(ability, "read", "Widgets")

    def test_guest_reads_items_only(self):
        ability = guest_ability()
        assert ability.can(Action.READ, Subject.ITEM)
        assert not ability.can(Action.READ, Subject.USER)
        assert not ability.can(Action.CREATE, Subject.ITEM)

    def test_denied_error_description(self):
        err = AbilityDeniedError(Action.UPDATE, Subject.ITEM, "quantity")
        assert err.description == "update Item.quantity"
        assert "update Item.quantity" in str(err)


class TestResolveAbility:

    @pytest.mark.parametrize("user_id", [None, GUEST_USER_ID])
    def test_guest_ids_skip_the_repository(self, user_id):
        repo = FakeRepo()
        ability = resolve_ability(user_id, repo=repo)
        assert ability.is_guest
        assert repo.calls == []

    def test_unknown_user_is_guest(self):
        assert resolve_ability(42, repo=FakeRepo(user=None)).is_guest

    def test_inactive_user_is_guest(self):
        user = SimpleNamespace(id=5, is_active=False, role_id=1)
        repo = FakeRepo(user=user, permission_rows=rows(("ALL", "MANAGE")))
        assert resolve_ability(5, repo=repo).is_guest

    def test_user_without_role_is_guest(self):
        user = SimpleNamespace(id=5, is_active=True, role_id=None)
        assert resolve_ability(5, repo=FakeRepo(user=user)).is_guest

    def test_active_user_gets_role_rules(self):
        user = SimpleNamespace(id=5, is_active=True, role_id=2)
        repo = FakeRepo(user=user, permission_rows=rows(("ITEMS", "READ"), ("ITEMS", "CREATE")))

        ability = resolve_ability(5, repo=repo)

        assert ability.role_id == 2
        assert ability.can("create", "Item")
        assert not ability.can("delete", "Item")

    def test_seeded_roles_from_database(self, db_session, make_user):
        superadmin = make_user("root", role="SUPER_ADMIN")
        viewer = make_user("watcher", role="VIEWER")

        assert resolve_ability(superadmin.id).can("delete", "User")
        viewer_ability = resolve_ability(viewer.id)
        assert viewer_ability.can("read", "Item")
        assert not viewer_ability.can("create", "Item")
