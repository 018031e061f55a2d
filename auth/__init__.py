"""
Authentication: password hashing, account flows and session helpers.
"""
