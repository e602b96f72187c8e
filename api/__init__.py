"""
FastAPI RESTful API for the Book Lending Catalog.

This module provides:
- Book listing, creation, update and deletion
- Cover image uploads on book creation
- MongoDB-backed book storage
- Health checks
"""
