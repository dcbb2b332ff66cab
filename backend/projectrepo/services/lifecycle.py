"""
ProjectRepo Backend - Project Lifecycle State Machine
======================================================

What:  The single table of legal project status transitions.
Who:   Consulted by every ProjectService operation that changes a status.

Graph:
    DRAFT ──SUBMIT──▶ PENDING_REVIEW ──APPROVE──▶ APPROVED_FOR_FINAL ──PUBLISH_FINAL──▶ PUBLISHED
                          ▲      │
                          │      └──REJECT──▶ REJECTED
                          └────RESUBMIT────────┘

    PUBLISHED is terminal. APPROVED exists as a stored value only; it has no
    edges. Each action is performed by exactly one role; ownership (owning
    student, assigned supervisor) is checked by the caller.
"""

from enum import Enum
from typing import Dict, List, Tuple

from projectrepo.exceptions import InvalidTransitionError
from projectrepo.models.enums import ProjectStatus, UserRole


class ProjectAction(str, Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RESUBMIT = "RESUBMIT"
    PUBLISH_FINAL = "PUBLISH_FINAL"


TRANSITIONS: Dict[Tuple[ProjectStatus, ProjectAction], ProjectStatus] = {
    (ProjectStatus.DRAFT, ProjectAction.SUBMIT): ProjectStatus.PENDING_REVIEW,
    (ProjectStatus.PENDING_REVIEW, ProjectAction.APPROVE): ProjectStatus.APPROVED_FOR_FINAL,
    (ProjectStatus.PENDING_REVIEW, ProjectAction.REJECT): ProjectStatus.REJECTED,
    (ProjectStatus.REJECTED, ProjectAction.RESUBMIT): ProjectStatus.PENDING_REVIEW,
    (ProjectStatus.APPROVED_FOR_FINAL, ProjectAction.PUBLISH_FINAL): ProjectStatus.PUBLISHED,
}

ACTION_ROLES: Dict[ProjectAction, UserRole] = {
    ProjectAction.SUBMIT: UserRole.STUDENT,
    ProjectAction.APPROVE: UserRole.SUPERVISOR,
    ProjectAction.REJECT: UserRole.SUPERVISOR,
    ProjectAction.RESUBMIT: UserRole.STUDENT,
    ProjectAction.PUBLISH_FINAL: UserRole.STUDENT,
}


def next_status(current: str, action: ProjectAction) -> ProjectStatus:
    """
    Return the status a project moves to when `action` is applied.

    Raises:
        InvalidTransitionError: the pair is not an edge of the graph,
            including unknown status strings.
    """
    try:
        status = ProjectStatus(current)
    except ValueError:
        raise InvalidTransitionError(current_status=str(current), action=action.value)
    target = TRANSITIONS.get((status, action))
    if target is None:
        raise InvalidTransitionError(current_status=status.value, action=action.value)
    return target


def can_apply(current: str, action: ProjectAction) -> bool:
    try:
        next_status(current, action)
    except InvalidTransitionError:
        return False
    return True


def allowed_actions(current: str) -> List[ProjectAction]:
    """Actions with an outgoing edge from `current`, in declaration order."""
    return [action for action in ProjectAction if can_apply(current, action)]


def actor_role(action: ProjectAction) -> UserRole:
    return ACTION_ROLES[action]


def is_terminal(current: str) -> bool:
    return ProjectStatus(current) == ProjectStatus.PUBLISHED
