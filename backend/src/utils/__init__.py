"""
Utility modules for the booking backend.

This package contains shared helpers used across the application, including
date/time parsing and input validation.
"""
