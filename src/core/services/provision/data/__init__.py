"""
L0 Data — static application catalog.
"""
