"""
FastAPI application for the business contact manager.

This package contains the REST API for managing companies, importing
spreadsheets and sending email batches.
"""

__version__ = "1.0.0"
