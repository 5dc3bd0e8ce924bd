# ridehail/core/geo/__init__.py
"""
Геоданные: расстояния и поиск водителей поблизости.
"""

from ridehail.core.geo.service import GeoIndex, GeoPoint, NearbyDriver, calculate_distance

__all__ = ["GeoIndex", "GeoPoint", "NearbyDriver", "calculate_distance"]
