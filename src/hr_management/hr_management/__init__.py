"""HR management backend.

This package is organized by feature modules (users, leaves, attendance, ...)
with a thin Flask controller layer and service/repository layers. External
systems (mail, real-time events, calendar) live in ``integrations``.
"""
