"""Security constants."""

# Resource marker granting a privilege on every resource of an application.
ALL_RESOURCE = "*"

SPACE_RESOURCE_PREFIX = "space:"

SAVED_OBJECT_ACTIONS = ("get", "bulk_get", "find", "create", "bulk_create", "update", "delete")
READ_SAVED_OBJECT_ACTIONS = ("get", "bulk_get", "find")
