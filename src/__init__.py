"""Workstation provisioning — OS update router and desktop application installers."""

__version__ = "0.1.0"
