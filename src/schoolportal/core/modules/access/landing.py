"""Where an authenticated caller lands when they open the site root."""

from enum import StrEnum
from typing import assert_never

from schoolportal.core.modules.user.models import UserType


class Landing(StrEnum):
    """Top-level areas of the portal. The value is the route to redirect to."""

    ADMIN = "/admin"
    TEACHER = "/teacher"
    STUDENT = "/student"
    PARENT = "/parent"
    UNAUTHENTICATED = "/sign-in"


def landing_for(user_type: UserType | str | None) -> Landing:
    """Map a role to its landing area. Anything that is not a known role goes to sign-in."""
    if user_type is None:
        return Landing.UNAUTHENTICATED
    try:
        role = UserType(user_type)
    except ValueError:
        return Landing.UNAUTHENTICATED

    match role:
        case UserType.ADMIN:
            return Landing.ADMIN
        case UserType.TEACHER:
            return Landing.TEACHER
        case UserType.STUDENT:
            return Landing.STUDENT
        case UserType.PARENT:
            return Landing.PARENT
        case _:
            assert_never(role)
