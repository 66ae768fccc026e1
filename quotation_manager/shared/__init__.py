"""
Shared helpers reused by the services and the API layer.
"""
