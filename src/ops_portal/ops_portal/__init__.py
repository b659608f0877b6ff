"""Ops Portal package.

Feature modules (attendance, overtime, site visits, quotations, ...) each keep
a model, a repository protocol with its MySQL implementation, a service and a
thin Flask controller.
"""
