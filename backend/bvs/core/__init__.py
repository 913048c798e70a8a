"""
Core package for shared utilities.

Configuration, logging, error types, identifiers and security helpers used
by every BVS service.
"""
