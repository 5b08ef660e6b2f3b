"""
FullFeed Utilities
==================

Logging, exceptions and input validation shared by all components.
"""
