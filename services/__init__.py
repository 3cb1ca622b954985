"""
Business logic for authentication and the book catalogue.
"""
