# Overview: Permission system package.
# Re-exports the default role catalog used by seeding and the CLI.

from .definitions import ROLE_DEFINITIONS, DEFAULT_ROLE_PERMISSIONS

__all__ = [
    "ROLE_DEFINITIONS",
    "DEFAULT_ROLE_PERMISSIONS",
]
