"""
Shared Kernel Module
====================

Generic infrastructure used by the SLA bounded context and its entry
points (HTTP app, scheduler, command-line check).

Shared kernel contains only technical concerns:
- Structured logging
- HTTP middleware

DO NOT add SLA business logic to shared kernel.
"""

__version__ = "1.0.0"
