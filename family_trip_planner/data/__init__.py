"""
Domain models for requests, provider records and pipeline results.
"""
