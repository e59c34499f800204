"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Workshop:
- clients.py        : Clients, client profile, equipment, client export
- technicians.py    : Technician CRUD
- inventory.py      : Spare parts, stock, scanner lookup, parts export
- service_orders.py : Intake, status workflow, finish, history, agenda
- invoices.py       : Invoice data, PDF download, Drive upload

Back office:
- finance.py        : Income summaries by period
- import_center.py  : Excel template and bulk import
- settings.py       : Business profile
- users.py          : Team management (admin only)

Integrations:
- ai_chat.py        : ServiBot chat, diagnosis, message drafting
- google_service.py : Drive / Calendar actions and credential diagnostic

Other:
- pages.py          : Service info (/) and dashboard summary
- auth_routes.py    : Login, registration, logout, current user

Health endpoints (/api/health, /api/ready, /api/metrics, /api/ping) live in
health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
