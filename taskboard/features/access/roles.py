"""
Role hierarchy: a total order over Viewer < Admin < Owner.
"""
import enum


class Role(str, enum.Enum):
    """Role a user holds within their home organization."""
    OWNER = "owner"
    ADMIN = "admin"
    VIEWER = "viewer"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]


ROLE_LEVELS: dict[Role, int] = {
    Role.VIEWER: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}


def dominates(a: Role, b: Role) -> bool:
    """True if role ``a`` is at least as privileged as role ``b``."""
    return ROLE_LEVELS[a] >= ROLE_LEVELS[b]


def strictly_dominates(a: Role, b: Role) -> bool:
    """True if role ``a`` is more privileged than role ``b``."""
    return ROLE_LEVELS[a] > ROLE_LEVELS[b]


def roles_at_or_below(role: Role) -> list[Role]:
    """All roles with equal or lower privileges, most privileged first."""
    return sorted(
        (r for r in Role if dominates(role, r)),
        key=lambda r: ROLE_LEVELS[r],
        reverse=True,
    )


def max_assignable_role(role: Role) -> Role:
    """
    Highest role a user holding ``role`` may hand out.

    Owners can assign up to Admin, Admins up to Viewer. Viewers map to Viewer
    for totality but cannot assign anything (see ``can_assign_role``).
    """
    if role == Role.OWNER:
        return Role.ADMIN
    return Role.VIEWER


def can_assign_role(assigner: Role, role_to_assign: Role) -> bool:
    if assigner == Role.VIEWER:
        return False
    return dominates(max_assignable_role(assigner), role_to_assign)


def manageable_roles(role: Role) -> frozenset[Role]:
    """Roles whose holders a user with ``role`` may assign, modify or deactivate."""
    if role == Role.OWNER:
        return frozenset({Role.ADMIN, Role.VIEWER})
    if role == Role.ADMIN:
        return frozenset({Role.VIEWER})
    return frozenset()


def viewable_roles(role: Role) -> frozenset[Role]:
    """Roles whose holders a user with ``role`` may list and inspect."""
    if role == Role.OWNER:
        return frozenset(Role)
    if role == Role.ADMIN:
        return frozenset({Role.ADMIN, Role.VIEWER})
    return frozenset({Role.VIEWER})


def is_admin(role: Role) -> bool:
    """Owners and Admins hold administrative privileges."""
    return dominates(role, Role.ADMIN)


def is_owner(role: Role) -> bool:
    return role == Role.OWNER
