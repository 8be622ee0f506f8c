"""
Infrastructure package for the chromatin switch pipeline.

This package contains infrastructure components including data access, logging,
argument parsing, and other cross-cutting concerns.
"""
