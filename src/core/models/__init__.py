"""
Domain models — Pydantic types shared across the provisioner.

    from src.core.models import Family, HostIdentity, OperatingSystem
"""

from src.core.models.host import Family, HostIdentity, OperatingSystem

__all__ = [
    # host.py
    "Family",
    "HostIdentity",
    "OperatingSystem",
]
