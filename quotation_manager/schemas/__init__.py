"""
Record factories, enums and request validation.
"""
