"""
FastAPI RESTful API for the Book Store.

This module provides:
- CRUD endpoints for books stored in MongoDB
- Request body and ObjectId validation
- Cover image uploads served as static files
"""
