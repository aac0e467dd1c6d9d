"""
SLA Escalation Email Template
==============================

Default CineTix breach email and a small {{placeholder}} renderer.

Placeholders: priority, cinema_name, hours_overdue, ticket_id,
ticket_subject, created_at. Values are HTML-escaped in the body.
"""

import html
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import yaml

from cinetix.core import ConfigurationException
from cinetix.sla.domain import EscalationNotice

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")

DEFAULT_SUBJECT = "🚨 SLA Breach: {{priority}} Priority Ticket from {{cinema_name}}"

DEFAULT_HTML_BODY = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: linear-gradient(135deg, #dc2626 0%, #b91c1c 100%); color: white; padding: 30px; text-align: center; border-radius: 8px 8px 0 0; }
    .content { background: #ffffff; padding: 30px; border: 1px solid #e5e7eb; border-top: none; border-radius: 0 0 8px 8px; }
    .alert-box { background: #fef2f2; border: 1px solid #fecaca; border-radius: 8px; padding: 20px; margin: 20px 0; }
    .detail-row { display: flex; justify-content: space-between; padding: 12px 0; border-bottom: 1px solid #f3f4f6; }
    .detail-label { color: #6b7280; font-weight: 500; }
    .detail-value { color: #111827; font-weight: 600; }
    .priority-badge { display: inline-block; padding: 4px 12px; border-radius: 20px; font-size: 12px; font-weight: 600; text-transform: uppercase; }
    .priority-urgent { background: #fef2f2; color: #dc2626; }
    .priority-high { background: #fff7ed; color: #ea580c; }
    .priority-medium { background: #fefce8; color: #ca8a04; }
    .priority-low { background: #f0fdf4; color: #16a34a; }
    .footer { text-align: center; padding: 20px; color: #6b7280; font-size: 12px; }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1 style="margin: 0; font-size: 24px;">⚠️ SLA Breach Alert</h1>
      <p style="margin: 10px 0 0 0; opacity: 0.9;">A support ticket has exceeded its response time target</p>
    </div>
    <div class="content">
      <div class="alert-box">
        <strong style="color: #dc2626;">⏱️ Overdue by {{hours_overdue}} hours</strong>
        <p style="margin: 10px 0 0 0; color: #7f1d1d;">This ticket requires immediate attention to meet SLA requirements.</p>
      </div>

      <h2 style="color: #111827; margin-bottom: 20px;">Ticket Details</h2>

      <div class="detail-row">
        <span class="detail-label">Ticket ID</span>
        <span class="detail-value">{{ticket_id}}</span>
      </div>
      <div class="detail-row">
        <span class="detail-label">Subject</span>
        <span class="detail-value">{{ticket_subject}}</span>
      </div>
      <div class="detail-row">
        <span class="detail-label">Cinema</span>
        <span class="detail-value">{{cinema_name}}</span>
      </div>
      <div class="detail-row">
        <span class="detail-label">Priority</span>
        <span class="priority-badge priority-{{priority}}">{{priority}}</span>
      </div>
      <div class="detail-row">
        <span class="detail-label">Created At</span>
        <span class="detail-value">{{created_at}}</span>
      </div>

      <div style="text-align: center; margin-top: 30px;">
        <p style="color: #6b7280;">Please log in to the Platform Admin dashboard to respond to this ticket.</p>
      </div>
    </div>
    <div class="footer">
      <p>This is an automated SLA escalation notification from the Cinema Platform.</p>
    </div>
  </div>
</body>
</html>
"""


MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_created_at(value: datetime) -> str:
    """Medium date, short time in UTC: 'Oct 17, 2026, 3:04 PM UTC'."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    month = MONTH_ABBREVIATIONS[value.month - 1]
    return f"{month} {value.day}, {value.year}, {hour}:{value.minute:02d} {meridiem} UTC"


def short_ticket_id(ticket_id: str) -> str:
    return f"{ticket_id[:8]}..."


def render(template: str, values: Dict[str, str], escape: bool = True) -> str:
    """Replace {{name}} placeholders; unknown names are left as-is."""
    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        return html.escape(values[key]) if escape else values[key]

    return PLACEHOLDER_PATTERN.sub(substitute, template)


@dataclass(frozen=True)
class EscalationEmailTemplate:
    """Subject and HTML body of the breach email."""
    subject: str = DEFAULT_SUBJECT
    html_body: str = DEFAULT_HTML_BODY

    @classmethod
    def from_file(cls, path: Path) -> "EscalationEmailTemplate":
        """
        Load a custom template from YAML with 'subject' and 'html_body' keys.

        Missing keys keep the default.
        """
        if not path.exists():
            raise ConfigurationException(f"Escalation template not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            subject=data.get("subject") or DEFAULT_SUBJECT,
            html_body=data.get("html_body") or DEFAULT_HTML_BODY
        )

    @staticmethod
    def values_for(notice: EscalationNotice) -> Dict[str, str]:
        return {
            "priority": notice.priority,
            "cinema_name": notice.cinema_name,
            "hours_overdue": f"{notice.hours_overdue:.1f}",
            "ticket_id": short_ticket_id(notice.ticket_id),
            "ticket_subject": notice.ticket_subject,
            "created_at": format_created_at(notice.created_at),
        }

    def render_subject(self, notice: EscalationNotice) -> str:
        values = self.values_for(notice)
        # Subject is plain text; priority is shouted as in the platform emails
        values["priority"] = notice.priority.upper()
        return render(self.subject, values, escape=False)

    def render_body(self, notice: EscalationNotice) -> str:
        return render(self.html_body, self.values_for(notice))
