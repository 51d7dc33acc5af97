"""School records backend.

Feature modules (auth, users, students, attendance, portal) each expose a
repository protocol, a MySQL implementation, a service and a thin Flask
controller. ``main.create_app`` wires them together through ``container``.
"""
