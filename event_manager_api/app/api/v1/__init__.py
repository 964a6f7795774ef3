"""
Version 1 of the API.

Served under ``/api``; breaking changes belong in a new version
subpackage.
"""
