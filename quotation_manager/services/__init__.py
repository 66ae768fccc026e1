"""
Cost engine, pricing, numbering, summaries and persistence services.
"""
