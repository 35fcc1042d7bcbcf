"""
Per-status access control for project boards.

Every decision here is pure: callers resolve a ``MembershipContext`` once per
request (see ``taskboard.services.membership``) and then ask these helpers
whether an action is allowed. Decisions come back as ``Decision`` values;
``ensure_allowed`` converts a denial into an ``AccessDenied`` at the service
boundary.

Rules:
- Global admins and project owners/admins are unrestricted.
- Members and viewers are governed by grant rows keyed by status id, with an
  optional project-wide default row (status id NULL). A status-specific row
  always wins over the default.
- Moving a task requires ``edit`` on the status being left and ``create`` on
  the status being entered.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional, TypeVar

from taskboard.core.errors import AccessDenied
from taskboard.core.messages import AccessMessages
from taskboard.models.project import ProjectRole

T = TypeVar("T")


class Action(str, Enum):
    read = "read"
    create = "create"
    edit = "edit"
    delete = "delete"


@dataclass(frozen=True)
class Grant:
    can_read: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False

    def allows(self, action: Action | str) -> bool:
        return bool(getattr(self, f"can_{Action(action).value}"))

    def as_dict(self) -> dict[str, bool]:
        return {
            "can_read": self.can_read,
            "can_create": self.can_create,
            "can_edit": self.can_edit,
            "can_delete": self.can_delete,
        }

    @classmethod
    def from_row(cls, row: Any) -> "Grant":
        return cls(
            can_read=bool(row.can_read),
            can_create=bool(row.can_create),
            can_edit=bool(row.can_edit),
            can_delete=bool(row.can_delete),
        )


FULL_GRANT = Grant(can_read=True, can_create=True, can_edit=True, can_delete=True)
NO_GRANT = Grant()

_ROLE_DEFAULT_GRANTS: dict[ProjectRole, Grant] = {
    ProjectRole.viewer: Grant(can_read=True),
    ProjectRole.member: Grant(can_read=True, can_create=True, can_edit=True),
}


def default_grant_for_role(role: ProjectRole) -> Optional[Grant]:
    """Project-wide grant seeded for a new constrained member; None for privileged roles."""
    return _ROLE_DEFAULT_GRANTS.get(ProjectRole(role))


def _empty_mapping() -> Mapping[int, Grant]:
    return MappingProxyType({})


@dataclass(frozen=True)
class PermissionIndex:
    """Two-tier lookup: per-status grants first, then the project-wide default."""

    by_status: Mapping[int, Grant] = field(default_factory=_empty_mapping)
    default: Optional[Grant] = None

    def lookup(self, status_id: Optional[int]) -> Optional[Grant]:
        if status_id is not None:
            grant = self.by_status.get(status_id)
            if grant is not None:
                return grant
        return self.default

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> "PermissionIndex":
        by_status: dict[int, Grant] = {}
        default: Optional[Grant] = None
        for row in rows:
            grant = Grant.from_row(row)
            if row.status_id is None:
                default = grant
            else:
                by_status[row.status_id] = grant
        return cls(by_status=MappingProxyType(by_status), default=default)

    @classmethod
    def universal(cls) -> "PermissionIndex":
        return cls(default=FULL_GRANT)


@dataclass(frozen=True)
class MembershipContext:
    user_id: int
    project_id: int
    role: ProjectRole
    member_id: Optional[int] = None
    is_global_admin: bool = False
    permissions: PermissionIndex = field(default_factory=PermissionIndex)

    @property
    def is_privileged(self) -> bool:
        return self.is_global_admin or self.role.is_privileged

    @property
    def acts_as_owner(self) -> bool:
        return self.is_global_admin or self.role == ProjectRole.owner


class DenyReason(str, Enum):
    not_a_member = "not_a_member"
    no_permission_record = "no_permission_record"
    action_not_granted = "action_not_granted"
    role_required = "role_required"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls) -> "Decision":
        return _ALLOW

    @classmethod
    def deny(cls, reason: DenyReason, detail: Optional[str] = None) -> "Decision":
        return cls(allowed=False, reason=reason, detail=detail)


_ALLOW = Decision(allowed=True)


def check_permission(
    ctx: MembershipContext,
    action: Action | str,
    status_id: Optional[int] = None,
) -> Decision:
    action = Action(action)
    if ctx.is_privileged:
        return Decision.allow()
    grant = ctx.permissions.lookup(status_id)
    if grant is None:
        return Decision.deny(DenyReason.no_permission_record, AccessMessages.NO_PERMISSION_RECORD)
    if not grant.allows(action):
        return Decision.deny(
            DenyReason.action_not_granted,
            AccessMessages.ACTION_NOT_GRANTED.format(action=action.value),
        )
    return Decision.allow()


def check_transition(
    ctx: MembershipContext,
    from_status_id: Optional[int],
    to_status_id: Optional[int],
) -> Decision:
    if ctx.is_privileged:
        return Decision.allow()
    leave = check_permission(ctx, Action.edit, from_status_id)
    if not leave or to_status_id == from_status_id:
        return leave
    enter = check_permission(ctx, Action.create, to_status_id)
    if not enter:
        return Decision.deny(enter.reason or DenyReason.action_not_granted, AccessMessages.NO_MOVE_PERMISSION)
    return Decision.allow()


def require_role(ctx: MembershipContext, allowed_roles: Iterable[ProjectRole]) -> Decision:
    roles = [ProjectRole(role) for role in allowed_roles]
    if ctx.is_global_admin or ctx.role in roles:
        return Decision.allow()
    return Decision.deny(
        DenyReason.role_required,
        AccessMessages.ROLE_REQUIRED.format(roles=" or ".join(role.value for role in roles)),
    )


def can_manage_project(ctx: MembershipContext) -> Decision:
    return require_role(ctx, (ProjectRole.owner, ProjectRole.admin))


def filter_readable(
    ctx: MembershipContext,
    items: Iterable[T],
    status_of: Callable[[T], Optional[int]] = lambda item: getattr(item, "task_status_id"),
) -> list[T]:
    """Keep only the items whose status the caller may read, preserving order."""
    if ctx.is_privileged:
        return list(items)
    return [item for item in items if check_permission(ctx, Action.read, status_of(item))]


def effective_grant(ctx: MembershipContext, status_id: Optional[int]) -> Grant:
    if ctx.is_privileged:
        return FULL_GRANT
    return ctx.permissions.lookup(status_id) or NO_GRANT


def status_grants(ctx: MembershipContext, statuses: Iterable[Any]) -> dict[int, Grant]:
    return {status.id: effective_grant(ctx, status.id) for status in statuses}


def ensure_allowed(decision: Decision, error: type[AccessDenied] = AccessDenied) -> None:
    if not decision:
        raise error(
            decision.detail,
            reason=decision.reason.value if decision.reason else None,
            decision=decision,
        )
