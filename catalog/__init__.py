"""
Book catalog package for the lending management API.

This package contains:
- Book record models and request payload validation
- Payload normalization with optional-field defaults
- Cover image filename sanitization and file storage
- The book workflow that sequences persistence and cover attachment
"""

__version__ = "1.0.0"
