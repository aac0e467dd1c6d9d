"""
CineTix SLA Service
===================

First-response SLA countdowns and breach escalation for CineTix
support tickets.
"""

__version__ = "1.0.0"
