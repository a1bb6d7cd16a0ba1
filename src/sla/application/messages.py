"""
SLA Notification Messages
==========================

Subject and HTML body builders for the three SLA notifications:
warning, breach and management escalation.
"""

from dataclasses import dataclass
from html import escape

from src.config import SLAType
from src.sla.domain import Ticket, format_minutes


@dataclass(frozen=True)
class Message:
    """Rendered notification."""
    subject: str
    body: str


_SLA_LABELS = {
    SLAType.RESPONSE: ("Response", "first response"),
    SLAType.RESOLUTION: ("Resolution", "resolution"),
}

_LEVEL_COLORS = {
    1: ("#ede9fe", "#7c3aed", "#5b21b6"),
    2: ("#fef3c7", "#f59e0b", "#92400e"),
    3: ("#fee2e2", "#dc2626", "#991b1b"),
    4: ("#fee2e2", "#991b1b", "#7f1d1d"),
    5: ("#fecaca", "#7f1d1d", "#450a0a"),
}

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: {header_color}; padding: 20px; border-radius: 8px 8px 0 0;">
    <h1 style="color: white; margin: 0; font-size: 24px;">{title}</h1>
    {subtitle}
  </div>
  <div style="background: #ffffff; padding: 30px; border: 1px solid #e5e7eb; border-top: none;">
    <p style="color: #374151; font-size: 16px;">{intro}</p>
    <div style="background: {callout_bg}; border-left: 4px solid {callout_border}; padding: 15px; margin-bottom: 20px;">
      <p style="margin: 0; color: {callout_text};"><strong>{callout}</strong></p>
    </div>
    <table style="width: 100%; border-collapse: collapse; margin-bottom: 20px;">
      {rows}
    </table>
    {actions}
    <p style="color: #6b7280; font-size: 14px;">{footer_note}</p>
  </div>
  <div style="text-align: center; padding: 20px; color: #9ca3af; font-size: 12px;">
    {signature}
  </div>
</div>
"""

_ROW = (
    '<tr><td style="padding: 10px; border-bottom: 1px solid #e5e7eb; color: #6b7280;">{label}</td>'
    '<td style="padding: 10px; border-bottom: 1px solid #e5e7eb; color: #111827;">{value}</td></tr>'
)

RECOMMENDED_ACTIONS = (
    "Review ticket priority and reassign if necessary",
    "Contact the assigned agent or assign to available staff",
    "Communicate with the requester about the delay",
    "Document reasons for the breach for process improvement",
)

_ACTIONS = """<div style="background: #f3f4f6; padding: 15px; border-radius: 6px; margin-bottom: 20px;">
      <p style="margin: 0 0 10px 0; color: #111827;"><strong>Recommended Actions:</strong></p>
      <ul style="margin: 0; padding-left: 20px; color: #374151;">
        {items}
      </ul>
    </div>"""


def _labels(sla_type: str) -> tuple[str, str]:
    return _SLA_LABELS[sla_type]


def _ticket_rows(ticket: Ticket, include_created: bool = False) -> str:
    rows = [
        ("Ticket Number", ticket.ticket_number),
        ("Subject", ticket.subject),
        ("Priority", ticket.priority.name if ticket.priority else "N/A"),
        ("Status", ticket.status),
        ("Requester", ticket.requester.display_name),
        ("Assigned To", ticket.assignee.display_name if ticket.assignee else "Unassigned"),
    ]
    if include_created:
        rows.append(("Created", ticket.created_at.strftime("%Y-%m-%d %H:%M UTC")))
    return "\n      ".join(
        _ROW.format(label=label, value=escape(str(value))) for label, value in rows
    )


def build_warning_message(ticket: Ticket, sla_type: str, minutes_left: int) -> Message:
    """Approaching-deadline notification for the ticket owner."""
    short, long = _labels(sla_type)
    subject = (
        f"⚠️ SLA Warning: Ticket {ticket.ticket_number} - "
        f"{short} deadline approaching"
    )
    body = _LAYOUT.format(
        header_color="#d97706",
        title="SLA Warning",
        subtitle="",
        intro=f"The following ticket is approaching its <strong>{long}</strong> SLA deadline:",
        callout_bg="#fef3c7",
        callout_border="#f59e0b",
        callout_text="#92400e",
        callout=f"Time Remaining: {format_minutes(minutes_left)}",
        rows=_ticket_rows(ticket),
        actions="",
        footer_note="Please take action to avoid an SLA breach.",
        signature="This is an automated message from the Help Desk system.",
    )
    return Message(subject=subject, body=body)


def build_breach_message(ticket: Ticket, sla_type: str, minutes_overdue: int) -> Message:
    """Deadline-exceeded notification for the ticket owner."""
    short, long = _labels(sla_type)
    subject = (
        f"🚨 SLA BREACHED: Ticket {ticket.ticket_number} - "
        f"{short} deadline exceeded"
    )
    body = _LAYOUT.format(
        header_color="#b91c1c",
        title="SLA Breached",
        subtitle="",
        intro=f"The following ticket has <strong>breached</strong> its <strong>{long}</strong> SLA:",
        callout_bg="#fee2e2",
        callout_border="#dc2626",
        callout_text="#991b1b",
        callout=f"Overdue by: {format_minutes(minutes_overdue)}",
        rows=_ticket_rows(ticket),
        actions="",
        footer_note="Immediate action required. This ticket has exceeded its SLA commitment.",
        signature="This is an automated message from the Help Desk system.",
    )
    return Message(subject=subject, body=body)


def build_escalation_message(
    ticket: Ticket,
    sla_type: str,
    minutes_overdue: int,
    escalation_level: int = 1,
    rule_name: str = "Default Escalation",
) -> Message:
    """Management escalation for a breached ticket."""
    short, long = _labels(sla_type)
    bg, border, text = _LEVEL_COLORS.get(escalation_level, _LEVEL_COLORS[1])
    subject = (
        f"🔺 ESCALATION (Level {escalation_level}): Ticket {ticket.ticket_number} - "
        f"{short} SLA Breach"
    )
    body = _LAYOUT.format(
        header_color=border,
        title=f"SLA Breach Escalation - Level {escalation_level}",
        subtitle=(
            '<p style="color: rgba(255,255,255,0.9); margin: 5px 0 0 0; font-size: 14px;">'
            f"{escape(rule_name)}</p>"
        ),
        intro=(
            "<strong>Management Alert:</strong> The following ticket has breached its "
            f"<strong>{long}</strong> SLA and requires your attention:"
        ),
        callout_bg=bg,
        callout_border=border,
        callout_text=text,
        callout=f"Overdue by: {format_minutes(minutes_overdue)}",
        rows=_ticket_rows(ticket, include_created=True),
        actions=_ACTIONS.format(items="\n        ".join(
            f"<li>{action}</li>" for action in RECOMMENDED_ACTIONS
        )),
        footer_note="This escalation was triggered automatically by the SLA monitor.",
        signature=f"Escalation Rule: {escape(rule_name)}<br>Help Desk System",
    )
    return Message(subject=subject, body=body)
