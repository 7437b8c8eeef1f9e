"""
Travel-data services: provider adapters and the facade that unifies them.
"""
