"""
L4 Execution — functions that WRITE to the system: subprocesses,
downloads, temporary workspaces, bulk updates.
"""
