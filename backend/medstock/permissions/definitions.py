# Overview: Default roles and their permission rows.
# Each row is defined as: (subject, action) with field_name "" and can_access True.


ROLE_DEFINITIONS = [
    ("SUPER_ADMIN", "Full system access"),
    ("ADMIN", "System administrator"),
    ("INVENTORY_MANAGER", "Manages items, categories and departments"),
    ("INVENTORY_USER", "Views and updates the items they are responsible for"),
    ("VIEWER", "Read-only access to data and statistics"),
    ("USER", "Views items only"),
]


_CRUD = ("CREATE", "READ", "UPDATE", "DELETE")


def _crud(subject: str) -> list[tuple[str, str]]:
    return [(subject, action) for action in _CRUD]


DEFAULT_ROLE_PERMISSIONS: dict[str, list[tuple[str, str]]] = {
    # Superuser wildcard
    "SUPER_ADMIN": [("ALL", "MANAGE")],

    "ADMIN": [
        *_crud("ITEMS"),
        *_crud("USERS"),
        *_crud("CATEGORIES"),
        *_crud("DEPARTMENTS"),
        *_crud("RANKS"),
        *_crud("FLOORS"),
        ("STATISTICS", "READ"),
        ("DASHBOARD", "READ"),
    ],

    "INVENTORY_MANAGER": [
        *_crud("ITEMS"),
        *_crud("CATEGORIES"),
        *_crud("DEPARTMENTS"),
        ("FLOORS", "READ"),
        ("RANKS", "READ"),
        ("STATISTICS", "READ"),
        ("DASHBOARD", "READ"),
        ("REPORTS", "READ"),
    ],

    "INVENTORY_USER": [
        ("ITEMS", "READ"),
        ("ITEMS", "UPDATE"),
        ("CATEGORIES", "READ"),
        ("DEPARTMENTS", "READ"),
        ("FLOORS", "READ"),
    ],

    "VIEWER": [
        ("ITEMS", "READ"),
        ("CATEGORIES", "READ"),
        ("DEPARTMENTS", "READ"),
        ("RANKS", "READ"),
        ("FLOORS", "READ"),
        ("STATISTICS", "READ"),
        ("DASHBOARD", "READ"),
        ("REPORTS", "READ"),
    ],

    "USER": [
        ("ITEMS", "READ"),
    ],
}
