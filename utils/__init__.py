"""
Shared helpers: logging setup, route error handling, Redis event publishing
"""
