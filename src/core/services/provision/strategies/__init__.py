"""
Installer strategies — resolve, fetch and install one application.
"""
