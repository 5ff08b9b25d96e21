"""Reusable data-access patterns.

Generic async repository, the pagination envelope shared by every list
endpoint, and identifier generation.
"""
