"""Tests for per-status access decisions.

Tests cover:
- Privilege bypass for owners, admins and global admins
- Two-tier lookup (status-specific grant over project-wide default)
- Transition checks between statuses
- Role requirements and listing filters

Uses SimpleNamespace rows to stand in for loaded permission records.
"""

from types import SimpleNamespace

import pytest

from taskboard.core.errors import AccessDenied
from taskboard.models.project import ProjectRole
from taskboard.services.permissions import (
    FULL_GRANT,
    NO_GRANT,
    Action,
    Decision,
    DenyReason,
    Grant,
    MembershipContext,
    PermissionIndex,
    check_permission,
    check_transition,
    default_grant_for_role,
    ensure_allowed,
    filter_readable,
    require_role,
    status_grants,
)

TODO, DOING, DONE = 11, 12, 13
ALL_STATUSES = (TODO, DOING, DONE, None)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _row(status_id=None, *, read=False, create=False, edit=False, delete=False) -> SimpleNamespace:
    return SimpleNamespace(
        status_id=status_id,
        can_read=read,
        can_create=create,
        can_edit=edit,
        can_delete=delete,
    )


def _ctx(role: ProjectRole = ProjectRole.member, rows=(), *, is_global_admin: bool = False) -> MembershipContext:
    return MembershipContext(
        user_id=7,
        project_id=3,
        role=role,
        member_id=70,
        is_global_admin=is_global_admin,
        permissions=PermissionIndex.from_rows(rows),
    )


# ---------------------------------------------------------------------------
# Privilege bypass
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("role", [ProjectRole.owner, ProjectRole.admin])
@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("status_id", ALL_STATUSES)
def test_privileged_roles_allowed_everywhere(role, action, status_id):
    # A denying row must not matter for privileged roles.
    ctx = _ctx(role, [_row(status_id or TODO)])

    assert check_permission(ctx, action, status_id).allowed


@pytest.mark.unit
@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("status_id", ALL_STATUSES)
def test_global_admin_allowed_without_membership(action, status_id):
    ctx = MembershipContext(
        user_id=1,
        project_id=99,
        role=ProjectRole.owner,
        is_global_admin=True,
        permissions=PermissionIndex.universal(),
    )

    assert check_permission(ctx, action, status_id).allowed
    assert check_transition(ctx, TODO, DONE).allowed


@pytest.mark.unit
def test_global_admin_passes_role_requirements():
    ctx = _ctx(ProjectRole.viewer, is_global_admin=True)

    assert require_role(ctx, [ProjectRole.owner]).allowed


# ---------------------------------------------------------------------------
# Two-tier lookup
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("status_id", ALL_STATUSES)
def test_default_grant_applies_to_every_status(status_id):
    ctx = _ctx(rows=[_row(None, read=True)])

    assert check_permission(ctx, Action.read, status_id).allowed


@pytest.mark.unit
def test_status_specific_grant_overrides_default():
    ctx = _ctx(rows=[_row(None, read=True), _row(DOING, read=False)])

    decision = check_permission(ctx, Action.read, DOING)

    assert not decision
    assert decision.reason == DenyReason.action_not_granted
    assert check_permission(ctx, Action.read, TODO).allowed


@pytest.mark.unit
@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("status_id", ALL_STATUSES)
def test_member_without_rows_is_denied(action, status_id):
    decision = check_permission(_ctx(), action, status_id)

    assert decision == Decision.deny(DenyReason.no_permission_record, decision.detail)
    assert not decision.allowed


@pytest.mark.unit
def test_lookup_without_default_returns_none_for_unknown_status():
    index = PermissionIndex.from_rows([_row(TODO, read=True)])

    assert index.lookup(TODO) == Grant(can_read=True)
    assert index.lookup(DOING) is None
    assert index.lookup(None) is None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("edit_from", "create_to", "expected"),
    [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, False),
    ],
)
def test_transition_requires_edit_on_source_and_create_on_target(edit_from, create_to, expected):
    ctx = _ctx(rows=[_row(TODO, read=True, edit=edit_from), _row(DONE, read=True, create=create_to)])

    assert check_transition(ctx, TODO, DONE).allowed is expected


@pytest.mark.unit
def test_transition_to_same_status_is_plain_edit_check():
    ctx = _ctx(rows=[_row(TODO, read=True, edit=True)])

    assert check_transition(ctx, TODO, TODO).allowed


@pytest.mark.unit
def test_transition_denial_keeps_reason_from_target():
    ctx = _ctx(rows=[_row(TODO, read=True, edit=True)])

    decision = check_transition(ctx, TODO, DONE)

    assert decision.reason == DenyReason.no_permission_record


# ---------------------------------------------------------------------------
# Board scenarios
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_viewer_with_read_default_cannot_create():
    viewer = _ctx(ProjectRole.viewer, [_row(None, read=True)])

    decision = check_permission(viewer, Action.create, DOING)

    assert not decision
    assert decision.reason == DenyReason.action_not_granted


@pytest.mark.unit
def test_member_create_follows_status_specific_grant():
    member = _ctx(
        rows=[
            _row(DOING, read=True, create=True, edit=True, delete=False),
            _row(None, read=True),
        ]
    )

    assert not check_permission(member, Action.create, TODO)
    assert check_permission(member, Action.create, DOING)


@pytest.mark.unit
def test_move_denied_when_target_forbids_create():
    member = _ctx(rows=[_row(TODO, read=True, edit=True), _row(DONE, read=True, create=False)])

    assert check_permission(member, Action.edit, TODO)
    assert not check_transition(member, TODO, DONE)


# ---------------------------------------------------------------------------
# Role requirements, listing and grant summaries
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("role", "allowed"),
    [
        (ProjectRole.owner, True),
        (ProjectRole.admin, True),
        (ProjectRole.member, False),
        (ProjectRole.viewer, False),
    ],
)
def test_require_role(role, allowed):
    decision = require_role(_ctx(role), [ProjectRole.owner, ProjectRole.admin])

    assert decision.allowed is allowed
    if not allowed:
        assert decision.reason == DenyReason.role_required


@pytest.mark.unit
def test_filter_readable_keeps_order_and_drops_hidden_statuses():
    tasks = [SimpleNamespace(id=i, task_status_id=s) for i, s in enumerate([TODO, DOING, DONE, TODO])]
    ctx = _ctx(rows=[_row(None, read=True), _row(DOING, read=False)])

    visible = filter_readable(ctx, tasks)

    assert [task.id for task in visible] == [0, 2, 3]


@pytest.mark.unit
def test_status_grants_reports_effective_grants():
    statuses = [SimpleNamespace(id=TODO), SimpleNamespace(id=DOING)]
    member = _ctx(rows=[_row(TODO, read=True, edit=True)])

    assert status_grants(member, statuses) == {TODO: Grant(can_read=True, can_edit=True), DOING: NO_GRANT}
    assert status_grants(_ctx(ProjectRole.admin), statuses) == {TODO: FULL_GRANT, DOING: FULL_GRANT}


@pytest.mark.unit
def test_role_default_grants():
    assert default_grant_for_role(ProjectRole.viewer) == Grant(can_read=True)
    assert default_grant_for_role(ProjectRole.member) == Grant(can_read=True, can_create=True, can_edit=True)
    assert default_grant_for_role(ProjectRole.owner) is None
    assert default_grant_for_role(ProjectRole.admin) is None


@pytest.mark.unit
def test_ensure_allowed_raises_with_decision():
    decision = check_permission(_ctx(), Action.delete, TODO)

    with pytest.raises(AccessDenied) as exc_info:
        ensure_allowed(decision)

    assert exc_info.value.decision is decision
    assert exc_info.value.reason == DenyReason.no_permission_record.value
    ensure_allowed(Decision.allow())
