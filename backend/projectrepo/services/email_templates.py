"""
HTML bodies for transactional emails.

Each builder returns `(subject, html)`. User-supplied text (names, titles,
feedback) is HTML-escaped before interpolation.
"""

from html import escape
from typing import Optional, Tuple
from uuid import UUID

from projectrepo.config import settings
from projectrepo.models.enums import ProjectStatus


def _link(path: str) -> str:
    url = f"{settings.public_base_url}{path}"
    return f'<a href="{escape(url)}">{escape(url)}</a>'


def submission_email(student_name: str, project_title: str, project_id: UUID) -> Tuple[str, str]:
    """Sent to the supervisor on first submission and on every resubmission."""
    subject = f"New Project Submission for Review: {project_title}"
    html = (
        "<p>Hello,</p>"
        f"<p>Student <strong>{escape(student_name)}</strong> has submitted a project draft titled "
        f'"<strong>{escape(project_title)}</strong>" for your review.</p>'
        f"<p>Please review it here: {_link(f'/projects/{project_id}/review')}</p>"
    )
    return subject, html


def status_update_email(
    student_name: str,
    project_title: str,
    status: ProjectStatus,
    comments: Optional[str] = None,
) -> Optional[Tuple[str, str]]:
    """
    Sent to the student after a supervisor decision.

    Returns None for statuses that do not warrant an email.
    """
    html = (
        f"<p>Hello {escape(student_name)},</p>"
        f'<p>There is an update on your project, "<strong>{escape(project_title)}</strong>".</p>'
    )

    if status == ProjectStatus.REJECTED:
        subject = "Project Draft Requires Revisions"
        html += (
            "<p>Your supervisor has reviewed your draft and it requires revisions "
            "before it can be approved.</p>"
        )
        if comments:
            feedback = escape(comments).replace("\n", "<br>")
            html += (
                "<h3>Supervisor's Comments:</h3>"
                '<div style="background-color: #f0f0f0; padding: 10px; border-radius: 5px;">'
                f"{feedback}</div>"
            )
    elif status == ProjectStatus.APPROVED_FOR_FINAL:
        subject = "Project Draft Approved!"
        html += (
            "<p>Congratulations! Your draft has been <strong>APPROVED</strong>. "
            "You can now log in to upload your final report.</p>"
        )
    else:
        return None

    html += f"<p>You can view your project status on your dashboard: {_link('/dashboard')}</p>"
    return subject, html


def published_email(supervisor_name: str, student_name: str, project_title: str, project_id: UUID) -> Tuple[str, str]:
    subject = f"Project Published: {project_title}"
    html = (
        f"<p>Hello {escape(supervisor_name)},</p>"
        f"<p>{escape(student_name)} has published the final report of "
        f'"<strong>{escape(project_title)}</strong>" to the repository.</p>'
        f"<p>{_link(f'/projects/{project_id}')}</p>"
    )
    return subject, html


def otp_email(name: str, otp: str, ttl_minutes: int) -> Tuple[str, str]:
    subject = "Your Project Repository verification code"
    html = (
        f"<p>Hello {escape(name)},</p>"
        "<p>Use the code below to finish creating your account:</p>"
        f'<p style="font-size: 24px; letter-spacing: 4px;"><strong>{escape(otp)}</strong></p>'
        f"<p>The code expires in {ttl_minutes} minutes. If you did not request it, "
        "you can ignore this email.</p>"
    )
    return subject, html
