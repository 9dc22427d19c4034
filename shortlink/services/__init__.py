"""
Services module for business logic separation.

This module contains the shortcode engine and its background sweep,
keeping business rules separate from API endpoints and database models.
"""
