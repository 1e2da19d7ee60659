"""
Core modules for transaction tagging.

This package contains:
- config: Application configuration and settings
- exceptions: Custom exception classes
- logger: Logging configuration
- schema: Pydantic models for transactions and categories
- normalize: Statement cell normalization helpers
- parsing: CSV and spreadsheet statement parsing
- store: In-memory transaction store and review state machine
- categories: Category registry
- filters: Transaction view filtering
- exporters: CSV export
"""
