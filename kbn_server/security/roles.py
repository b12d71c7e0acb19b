"""Translation between role payloads and cluster role documents.

Kibana privileges live in the cluster as application privilege entries::

    {"application": "kibana-.kibana", "privileges": ["all"], "resources": ["*"]}
    {"application": "kibana-.kibana", "privileges": ["read"], "resources": ["space:marketing"]}

Writing a role is read-modify-write: entries belonging to other
applications are carried over untouched.
"""

from typing import Any, Optional

from kbn_server.security.constants import ALL_RESOURCE, SPACE_RESOURCE_PREFIX


def transform_kibana_privileges_to_es(
    application: str,
    kibana_privileges: dict[str, Any],
) -> list[dict[str, Any]]:
    """Build application entries for ``global`` then each space, in order."""
    entries: list[dict[str, Any]] = []

    global_privileges = kibana_privileges.get("global")
    if global_privileges:
        entries.append({
            "privileges": list(global_privileges),
            "application": application,
            "resources": [ALL_RESOURCE],
        })

    for space_id, privileges in (kibana_privileges.get("space") or {}).items():
        entries.append({
            "privileges": list(privileges),
            "application": application,
            "resources": [f"{SPACE_RESOURCE_PREFIX}{space_id}"],
        })

    return entries


def transform_role_to_es(
    application: str,
    payload: dict[str, Any],
    existing_applications: Optional[list[dict[str, Any]]] = None,
) -> dict[str, Any]:
    """
    Build the role document to send to the cluster.

    Args:
        application: Application whose entries are replaced
        payload: Role payload with optional ``metadata``, ``elasticsearch``
            and ``kibana`` sections
        existing_applications: Entries currently stored on the role

    Returns:
        Role body; absent or empty fields are omitted
    """
    elasticsearch = payload.get("elasticsearch") or {}
    kibana = payload.get("kibana") or {}

    other_applications = [
        entry for entry in (existing_applications or [])
        if entry.get("application") != application
    ]

    role = {
        "metadata": payload.get("metadata"),
        "cluster": elasticsearch.get("cluster"),
        "indices": elasticsearch.get("indices"),
        "run_as": elasticsearch.get("run_as"),
        "applications": other_applications + transform_kibana_privileges_to_es(application, kibana),
    }
    return {key: value for key, value in role.items() if value}


def transform_role_from_es(
    application: str,
    name: str,
    role: dict[str, Any],
) -> dict[str, Any]:
    """
    Build the API representation of a stored role.

    Entries of ``application`` whose resources are not understood, and all
    entries of other applications, are reported under
    ``_unrecognized_applications``.
    """
    kibana: dict[str, Any] = {"global": [], "space": {}}
    unrecognized: list[str] = []

    for entry in role.get("applications") or []:
        entry_application = entry.get("application")
        if entry_application != application:
            if entry_application not in unrecognized:
                unrecognized.append(entry_application)
            continue

        for resource in entry.get("resources") or []:
            privileges = list(entry.get("privileges") or [])
            if resource == ALL_RESOURCE:
                kibana["global"].extend(p for p in privileges if p not in kibana["global"])
            elif resource.startswith(SPACE_RESOURCE_PREFIX):
                space_id = resource[len(SPACE_RESOURCE_PREFIX):]
                existing = kibana["space"].setdefault(space_id, [])
                existing.extend(p for p in privileges if p not in existing)
            elif application not in unrecognized:
                unrecognized.append(application)

    result = {
        "name": name,
        "metadata": role.get("metadata") or {},
        "transient_metadata": role.get("transient_metadata") or {},
        "elasticsearch": {
            "cluster": role.get("cluster") or [],
            "indices": role.get("indices") or [],
            "run_as": role.get("run_as") or [],
        },
        "kibana": kibana,
    }
    if unrecognized:
        result["_unrecognized_applications"] = unrecognized
    return result
