"""
Template Rendering

Replaces ``{{name}}`` placeholders with variable values. Placeholders with
no matching variable are left as written so a missing value is visible in
previews.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from html import escape

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

DEFAULT_VARIABLES = [
    {
        "name": "applicantName",
        "description": "Full name of the applicant",
        "default_value": "[Applicant Name]",
    },
    {
        "name": "applicationId",
        "description": "Unique application ID",
        "default_value": "[Application ID]",
    },
    {
        "name": "organizationName",
        "description": "Name of your organization",
        "default_value": "[Organization Name]",
    },
    {
        "name": "currentDate",
        "description": "Current date",
        "default_value": "",
    },
]

# Variables filled in for every bulk send, with example values for editors
STANDARD_VARIABLES = [
    {"name": "applicantName", "description": "Full name of the applicant", "example": "John Doe"},
    {"name": "applicationId", "description": "Unique application ID", "example": "RND1234567890123"},
    {"name": "email", "description": "Applicant's email address", "example": "john.doe@example.com"},
    {"name": "phone", "description": "Applicant's phone number", "example": "9876543210"},
    {
        "name": "submissionDate",
        "description": "Date when the application was submitted",
        "example": "15 Jan 2024",
    },
    {"name": "status", "description": "Current application status", "example": "under_review"},
    {"name": "organizationName", "description": "Your organization name", "example": "Acme Labs"},
    {"name": "senderName", "description": "Your full name", "example": "Dr. John Smith"},
    {"name": "senderEmail", "description": "Your email address", "example": "hr@acme.example"},
    {"name": "currentDate", "description": "Current date", "example": "20 Jan 2024"},
    {"name": "currentTime", "description": "Current time", "example": "10:30"},
]

USAGE_EXAMPLE = "Dear {{applicantName}}, your application {{applicationId}} has been received."


def syntax_for(name: str) -> str:
    """Placeholder text for a variable name."""
    return "{{" + name + "}}"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body: str


def substitute(text: str, variables: dict[str, str], escape_values: bool = False) -> str:
    """Replace known placeholders in text."""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = str(variables[key])
        return escape(value) if escape_values else value

    return PLACEHOLDER.sub(replace, text)


def placeholders(text: str) -> set[str]:
    """Names of all placeholders used in text."""
    return set(PLACEHOLDER.findall(text))


def clock_variables(now: datetime) -> dict[str, str]:
    return {
        "currentDate": now.strftime("%d %b %Y"),
        "currentTime": now.strftime("%H:%M"),
    }


def render(subject: str, body: str, variables: dict[str, str], now: datetime) -> RenderedEmail:
    """
    Render a template.

    Values in the HTML body are escaped; the subject is plain text.
    currentDate and currentTime are filled in unless given explicitly.
    """
    merged = {**clock_variables(now), **variables}
    return RenderedEmail(
        subject=substitute(subject, merged),
        body=substitute(body, merged, escape_values=True),
    )
