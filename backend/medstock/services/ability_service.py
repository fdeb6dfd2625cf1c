# Overview: Ability engine; compiles role permission rows into allow rules and answers can() queries.

"""
Role-based abilities.

A role's stored rows (subject, action, field_name, can_access) are compiled
into an immutable Ability: a tuple of allow rules over closed Action and
Subject vocabularies. Everything not allowed is denied.

- ("ALL", "MANAGE") compiles to the universal rule.
- MANAGE on a subject implies every action on that subject.
- Rows with can_access false never become rules.
- Unknown tokens are skipped (logged, recorded on Ability.skipped).
- No surviving rule means the guest ability: read Item only.

This module holds no shared state; an Ability can be built once per request
and queried freely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


logger = logging.getLogger(__name__)

GUEST_USER_ID = -1


class Action(str, Enum):
    MANAGE = "manage"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Subject(str, Enum):
    ALL = "all"
    USER = "User"
    ITEM = "Item"
    CATEGORY = "Category"
    DEPARTMENT = "Department"
    RANK = "Rank"
    FLOOR = "Floor"
    STATISTICS = "Statistics"
    DASHBOARD = "Dashboard"
    REPORTS = "Reports"


# Stored tokens (upper-cased) -> vocabulary. Singular and plural forms both map.
_SUBJECT_TOKENS = {
    "ALL": Subject.ALL,
    "USERS": Subject.USER,
    "USER": Subject.USER,
    "ITEMS": Subject.ITEM,
    "ITEM": Subject.ITEM,
    "CATEGORIES": Subject.CATEGORY,
    "CATEGORY": Subject.CATEGORY,
    "DEPARTMENTS": Subject.DEPARTMENT,
    "DEPARTMENT": Subject.DEPARTMENT,
    "RANKS": Subject.RANK,
    "RANK": Subject.RANK,
    "FLOORS": Subject.FLOOR,
    "FLOOR": Subject.FLOOR,
    "STATISTICS": Subject.STATISTICS,
    "STATISTIC": Subject.STATISTICS,
    "DASHBOARD": Subject.DASHBOARD,
    "DASHBOARDS": Subject.DASHBOARD,
    "REPORTS": Subject.REPORTS,
    "REPORT": Subject.REPORTS,
}

_ACTION_TOKENS = {action.name: action for action in Action}


class AbilityDeniedError(Exception):
    """Raised when an ability does not allow the requested action."""

    def __init__(self, action, subject, field: str | None = None):
        self.action = action
        self.subject = subject
        self.field = field
        target = f"{_label(subject)}.{field}" if field else _label(subject)
        self.description = f"{_label(action)} {target}"
        super().__init__(f"Not allowed to {self.description}")


def _label(token) -> str:
    return token.value if isinstance(token, Enum) else str(token)


def parse_subject(token) -> Subject | None:
    """Subject member for an enum, stored token or vocabulary value; None if unknown."""
    if isinstance(token, Subject):
        return token
    if not isinstance(token, str):
        return None
    key = token.strip().upper()
    if key in _SUBJECT_TOKENS:
        return _SUBJECT_TOKENS[key]
    # Vocabulary values ("Item", "Statistics") are matched case-insensitively too
    for subject in Subject:
        if subject.value.upper() == key:
            return subject
    return None


def parse_action(token) -> Action | None:
    if isinstance(token, Action):
        return token
    if not isinstance(token, str):
        return None
    return _ACTION_TOKENS.get(token.strip().upper())


@dataclass(frozen=True)
class PermissionRow:
    """Input shape for compile_ability; RolePermission rows are accepted as-is."""
    subject: str
    action: str
    field_name: str | None = None
    can_access: bool = True


@dataclass(frozen=True)
class Rule:
    action: Action
    subject: Subject
    field: str | None = None

    def matches(self, action: Action, subject: Subject, field: str | None) -> bool:
        if self.action is not Action.MANAGE and self.action is not action:
            return False
        if self.subject is not Subject.ALL and self.subject is not subject:
            return False
        # Unscoped rules cover every field; a field query needs an exact scope.
        # A query without a field is satisfied by any scope on the pair.
        if self.field is None or field is None:
            return True
        return self.field == field

    def to_dict(self) -> dict:
        return {"action": self.action.value, "subject": self.subject.value, "field": self.field}


@dataclass(frozen=True)
class SkippedRule:
    row: PermissionRow
    reason: str


@dataclass(frozen=True)
class Ability:
    rules: tuple[Rule, ...]
    role_id: int | None = None
    is_guest: bool = False
    skipped: tuple[SkippedRule, ...] = field(default_factory=tuple)

    def can(self, action, subject, field: str | None = None) -> bool:
        return can(self, action, subject, field)

    def to_dict(self) -> dict:
        return {
            "role_id": self.role_id,
            "is_guest": self.is_guest,
            "rules": [rule.to_dict() for rule in self.rules],
        }


GUEST_RULES = (Rule(Action.READ, Subject.ITEM),)


def guest_ability() -> Ability:
    return Ability(rules=GUEST_RULES, role_id=None, is_guest=True)


def _as_row(row) -> PermissionRow:
    if isinstance(row, PermissionRow):
        return row
    return PermissionRow(
        subject=row.subject,
        action=row.action,
        field_name=row.field_name,
        can_access=row.can_access,
    )


def compile_ability(rows: Iterable, *, role_id: int | None = None) -> Ability:
    """
    Compile permission rows (in the given order) into an Ability.

    Rows whose can_access is false are dropped. If nothing survives, the
    guest ability is returned with the skipped rows attached.
    """
    rules: list[Rule] = []
    skipped: list[SkippedRule] = []

    for raw in rows:
        row = _as_row(raw)
        if row.can_access is not None and not row.can_access:
            continue

        subject = parse_subject(row.subject)
        action = parse_action(row.action)
        if subject is None:
            logger.warning("Skipping permission row with unknown subject %r (role %s)", row.subject, role_id)
            skipped.append(SkippedRule(row, f"unknown subject {row.subject!r}"))
            continue
        if action is None:
            logger.warning("Skipping permission row with unknown action %r (role %s)", row.action, role_id)
            skipped.append(SkippedRule(row, f"unknown action {row.action!r}"))
            continue

        field_name = (row.field_name or "").strip() or None
        rules.append(Rule(action, subject, field_name))

    if not rules:
        return Ability(rules=GUEST_RULES, role_id=role_id, is_guest=True, skipped=tuple(skipped))

    return Ability(rules=tuple(rules), role_id=role_id, is_guest=False, skipped=tuple(skipped))


def can(ability: Ability, action, subject, field: str | None = None) -> bool:
    """
    True if any rule allows (action, subject[, field]).

    Unknown action/subject tokens in the query are never allowed.
    """
    parsed_action = parse_action(action)
    parsed_subject = parse_subject(subject)
    if parsed_action is None or parsed_subject is None:
        return False
    if isinstance(field, str):
        field = field.strip() or None
    return any(rule.matches(parsed_action, parsed_subject, field) for rule in ability.rules)


def resolve_ability(user_id: int | None, repo=None) -> Ability:
    """
    Ability for a user id. Guests (None or GUEST_USER_ID), unknown or
    inactive users, and users without a role get the guest ability.
    """
    if user_id is None or user_id == GUEST_USER_ID:
        return guest_ability()

    if repo is None:
        from .repository import InventoryRepository
        repo = InventoryRepository()

    user, rows = repo.get_role_rules(user_id)
    if user is None:
        logger.warning("Ability requested for unknown user %s; using guest ability", user_id)
        return guest_ability()
    if not user.is_active:
        logger.warning("Ability requested for inactive user %s; using guest ability", user_id)
        return guest_ability()
    if user.role_id is None:
        logger.warning("User %s has no role; using guest ability", user_id)
        return guest_ability()

    return compile_ability(rows, role_id=user.role_id)
