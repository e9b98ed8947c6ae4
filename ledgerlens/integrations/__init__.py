"""
Integrations Package
Boundaries to external bookkeeping platforms.
"""
