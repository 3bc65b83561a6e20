"""
L1 Domain — pure types and decisions: errors, artifacts, routing.
"""
