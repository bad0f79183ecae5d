"""
Tests for placeholder rendering.
"""

from datetime import UTC, datetime

from app.modules.email_templates.rendering import placeholders, render, substitute

NOW = datetime(2026, 3, 2, 14, 5, tzinfo=UTC)


class TestSubstitute:
    def test_replaces_known_placeholders(self):
        assert substitute("Hi {{name}}!", {"name": "Asha"}) == "Hi Asha!"

    def test_allows_inner_whitespace(self):
        assert substitute("Hi {{ name }}", {"name": "Asha"}) == "Hi Asha"

    def test_keeps_unknown_placeholders(self):
        assert substitute("Ref {{applicationId}}", {}) == "Ref {{applicationId}}"

    def test_escapes_when_asked(self):
        assert substitute("{{v}}", {"v": "<b>"}, escape_values=True) == "&lt;b&gt;"
        assert substitute("{{v}}", {"v": "<b>"}) == "<b>"


class TestPlaceholders:
    def test_collects_names(self):
        assert placeholders("{{a}} and {{ b }} and {{a}}") == {"a", "b"}


class TestRender:
    def test_subject_and_body(self):
        rendered = render(
            "Update for {{applicationId}}",
            "<p>Dear {{applicantName}}</p>",
            {"applicationId": "RND1", "applicantName": "ASHA & CO"},
            NOW,
        )

        assert rendered.subject == "Update for RND1"
        assert rendered.body == "<p>Dear ASHA &amp; CO</p>"

    def test_clock_variables(self):
        rendered = render("{{currentDate}}", "{{currentTime}}", {}, NOW)

        assert rendered.subject == "02 Mar 2026"
        assert rendered.body == "14:05"

    def test_explicit_values_override_clock(self):
        rendered = render("{{currentDate}}", "", {"currentDate": "tomorrow"}, NOW)
        assert rendered.subject == "tomorrow"
