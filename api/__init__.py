"""
FastAPI REST API for the Bookshelf service.

This module provides:
- User signup and login with bearer tokens
- A token-protected home route
- Book CRUD endpoints
"""
