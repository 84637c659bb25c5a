"""HR onboarding service.

Organised by feature modules (employees, onboarding, audit, notifications,
support, ...) with a thin Flask controller layer over service and repository
layers.
"""
