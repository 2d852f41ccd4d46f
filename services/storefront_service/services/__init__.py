"""Storefront business logic, one module per concern."""
