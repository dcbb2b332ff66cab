"""
Role-based navigation.

A pure mapping from role to the links a client should render. Every role in
UserRole has a branch; anything else is a programming error.
"""

from typing import List

from projectrepo.models.enums import UserRole
from projectrepo.schemas.common import NavLink


def navigation_for(role: UserRole) -> List[NavLink]:
    if role == UserRole.STUDENT:
        return [
            NavLink(route="/dashboard", label="Home & Search"),
            NavLink(route="/my-projects", label="My Projects"),
            NavLink(route="/notifications", label="Notifications"),
        ]
    elif role == UserRole.SUPERVISOR:
        return [
            NavLink(route="/dashboard", label="Home & Search"),
            NavLink(route="/review", label="Review"),
            NavLink(route="/my-supervised", label="Supervised"),
            NavLink(route="/notifications", label="Notifications"),
        ]
    elif role == UserRole.ADMIN:
        return [
            NavLink(route="/admin/users", label="Users"),
            NavLink(route="/admin/classlist", label="Classlist"),
            NavLink(route="/admin/projects", label="Projects"),
        ]
    raise ValueError(f"Unknown role: {role!r}")
