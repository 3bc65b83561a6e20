"""
L5 Orchestration — run coordinator.
"""
