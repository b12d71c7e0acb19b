"""Application privilege definitions."""

from typing import Iterable

from kbn_server.security.constants import READ_SAVED_OBJECT_ACTIONS, SAVED_OBJECT_ACTIONS


def version_action(version: str) -> str:
    return f"version:{version}"


def login_action() -> str:
    return "action:login"


def saved_object_action(type: str, action: str) -> str:
    return f"action:saved_objects/{type}/{action}"


def build_privilege_map(version: str, saved_object_types: Iterable[str]) -> dict[str, list[str]]:
    """
    Map each privilege name to the actions it grants.

    ``all`` grants every saved object action on every registered type;
    ``read`` only the read actions.
    """
    types = sorted(set(saved_object_types))
    base = [version_action(version), login_action()]

    return {
        "all": base + [
            saved_object_action(t, a) for t in types for a in SAVED_OBJECT_ACTIONS
        ],
        "read": base + [
            saved_object_action(t, a) for t in types for a in READ_SAVED_OBJECT_ACTIONS
        ],
    }
