"""
Core Package
Cross-cutting concerns: error mapping and logging setup.
"""
