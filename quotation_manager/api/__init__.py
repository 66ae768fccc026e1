"""
Lambda-style HTTP API.
"""
