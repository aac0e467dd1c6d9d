"""Tests for the escalation email template."""

from datetime import datetime, timedelta, timezone

import pytest

from cinetix.core import ConfigurationException
from cinetix.sla.domain import EscalationNotice
from cinetix.sla.infrastructure import EscalationEmailTemplate
from cinetix.sla.infrastructure.templates import render, format_created_at


@pytest.fixture
def notice():
    return EscalationNotice(
        ticket_id="5b0c6f2e-8f55-4a8e-a9a4-1f5d0c2b7e11",
        ticket_subject="Refund <script>alert(1)</script>",
        cinema_name="Roxy & Sons",
        priority="urgent",
        created_at=datetime(2026, 10, 17, 15, 4, tzinfo=timezone.utc),
        escalation_email="ops@cinetix.example",
        hours_overdue=3
    )


def test_render_leaves_unknown_placeholders():
    assert render("{{a}} and {{ b }}", {"a": "x"}) == "x and {{ b }}"


def test_render_escapes_values():
    assert render("<p>{{v}}</p>", {"v": "<b>"}) == "<p>&lt;b&gt;</p>"


@pytest.mark.parametrize("value,expected", [
    (datetime(2026, 10, 17, 15, 4), "Oct 17, 2026, 3:04 PM UTC"),
    (datetime(2026, 1, 5, 0, 30), "Jan 5, 2026, 12:30 AM UTC"),
    (datetime(2026, 1, 5, 12, 0), "Jan 5, 2026, 12:00 PM UTC"),
    (datetime(2026, 5, 1, 9, 15, tzinfo=timezone(timedelta(hours=2))), "May 1, 2026, 7:15 AM UTC"),
])
def test_format_created_at(value, expected):
    assert format_created_at(value) == expected


class TestDefaultTemplate:
    def test_subject(self, notice):
        subject = EscalationEmailTemplate().render_subject(notice)

        assert subject == "🚨 SLA Breach: URGENT Priority Ticket from Roxy & Sons"

    def test_body(self, notice):
        body = EscalationEmailTemplate().render_body(notice)

        assert "Overdue by 3.0 hours" in body
        assert "5b0c6f2e..." in body
        assert "Oct 17, 2026, 3:04 PM" in body
        assert "Roxy &amp; Sons" in body
        assert "<script>" not in body
        assert "{{" not in body


class TestTemplateFile:
    def test_custom_template(self, tmp_path, notice):
        path = tmp_path / "escalation.yaml"
        path.write_text(
            'subject: "Late: {{ticket_subject}}"\n'
            'html_body: "<p>{{cinema_name}} is {{hours_overdue}}h late</p>"\n',
            encoding="utf-8"
        )

        template = EscalationEmailTemplate.from_file(path)

        assert template.render_body(notice) == "<p>Roxy &amp; Sons is 3.0h late</p>"
        assert template.render_subject(notice) == "Late: Refund <script>alert(1)</script>"

    def test_missing_keys_keep_defaults(self, tmp_path, notice):
        path = tmp_path / "escalation.yaml"
        path.write_text('subject: "Breach {{ticket_id}}"\n', encoding="utf-8")

        template = EscalationEmailTemplate.from_file(path)

        assert template.render_subject(notice) == "Breach 5b0c6f2e..."
        assert "SLA Breach Alert" in template.render_body(notice)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationException):
            EscalationEmailTemplate.from_file(tmp_path / "nope.yaml")
