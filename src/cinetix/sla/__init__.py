"""
SLA Monitoring Module
=====================

Bounded Context for first-response SLA tracking and breach escalation.

Responsibilities:
- Calculate live countdowns from priority targets
- Compute met/breached badges once a ticket is answered
- Flag tickets that miss their first-response target
- Escalate each breach once by email
- Provide HTTP API and countdown streams for the platform admin UI
"""

__version__ = "1.0.0"
