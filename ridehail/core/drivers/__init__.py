# ridehail/core/drivers/__init__.py
"""
Домен водителей.
"""

from ridehail.core.drivers.models import DriverAvailability, DriverEarnings
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.drivers.service import DriverService

__all__ = [
    "DriverAvailability",
    "DriverEarnings",
    "DriverRepository",
    "DriverService",
]
