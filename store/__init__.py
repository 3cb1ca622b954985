"""
MongoDB persistence for users and books.
"""
