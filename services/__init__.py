"""
Service layer for business logic.

This package contains the service that runs a review session: statement
loading, bulk category suggestion, filtering and export.
"""
