"""Static role/resource/action permission matrix."""

from types import MappingProxyType

from schoolportal.core.modules.user.models import UserType

WILDCARD = "*"

PERMISSIONS: MappingProxyType[UserType, dict[str, frozenset[str]]] = MappingProxyType(
    {
        UserType.ADMIN: {
            WILDCARD: frozenset({WILDCARD}),
        },
        UserType.TEACHER: {
            "students": frozenset({"read", "create", "update"}),
            "classes": frozenset({"read", "update"}),
            "lessons": frozenset({"read", "update", "create", "delete"}),
            "exams": frozenset({"read", "update", "create", "delete"}),
            "assignments": frozenset({"read", "update", "create", "delete"}),
            "results": frozenset({"read", "update", "create"}),
            "attendance": frozenset({"read", "update", "create"}),
            "announcements": frozenset({"read"}),
            "events": frozenset({"read"}),
            "teachers": frozenset({"read"}),
            "subjects": frozenset({"read"}),
            "parents": frozenset({"read"}),
        },
        UserType.STUDENT: {
            "profile": frozenset({"read", "update"}),
            "lessons": frozenset({"read"}),
            "exams": frozenset({"read"}),
            "assignments": frozenset({"read"}),
            "results": frozenset({"read"}),
            "attendance": frozenset({"read"}),
            "announcements": frozenset({"read"}),
            "events": frozenset({"read"}),
            "students": frozenset({"read"}),  # Classmates
        },
        UserType.PARENT: {
            "children": frozenset({"read"}),
            "students": frozenset({"read"}),  # Own children
            "attendance": frozenset({"read"}),
            "results": frozenset({"read"}),
            "announcements": frozenset({"read"}),
            "events": frozenset({"read"}),
            "fees": frozenset({"read"}),
            "teachers": frozenset({"read"}),
            "classes": frozenset({"read"}),
        },
    }
)


def has_permission(user_type: UserType, resource: str, action: str) -> bool:
    """Check whether a role may perform action on resource."""
    role_permissions = PERMISSIONS.get(user_type)
    if role_permissions is None:
        return False

    if WILDCARD in role_permissions.get(WILDCARD, frozenset()):
        return True

    return action in role_permissions.get(resource, frozenset())
