"""
SLA Monitoring Module
=====================

Bounded Context for Service Level Agreement monitoring and escalation.

Responsibilities:
- Calculate response and resolution deadlines from the ticket priority
- Classify each running SLA clock (not yet due, warning, breach, handled)
- Send warning and breach emails to the ticket owner
- Escalate breaches to the management roster
- Record each breach once so it is never notified twice
"""

__version__ = "1.0.0"
