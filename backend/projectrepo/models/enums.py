"""
ProjectRepo Backend - Closed Value Sets
========================================

Roles and project statuses are stored as plain strings (VARCHAR) and exposed
as `str` enums so they compare equal to the stored values and serialize to
JSON without conversion.
"""

from enum import Enum


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class ProjectStatus(str, Enum):
    """
    Project lifecycle states. The legal edges between them live in
    `projectrepo.services.lifecycle`.

    APPROVED is kept so stored rows holding it stay loadable; no transition
    leads into or out of it.
    """

    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    APPROVED_FOR_FINAL = "APPROVED_FOR_FINAL"
    REJECTED = "REJECTED"
    PUBLISHED = "PUBLISHED"
