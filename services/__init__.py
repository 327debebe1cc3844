"""
Service layer for the business contact manager.

This package contains framework-agnostic business logic (storage,
spreadsheet import, email batches) that can be used by the CLI, the API
or any other interface.
"""

__version__ = "1.0.0"
