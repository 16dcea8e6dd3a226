"""
Geometry helpers
Turns submitted GeoJSON and coordinates into stored geometries
"""
from numbers import Real
from typing import Any, Dict, Optional

from fishstocking.core.exceptions import ErrorCode, ValidationError

GEOMETRY_TYPES = (
    "Point", "MultiPoint", "LineString", "MultiLineString", "Polygon", "MultiPolygon"
)


def _invalid(message: str = "Invalid geometry") -> ValidationError:
    return ValidationError(ErrorCode.INVALID_GEOMETRY, message)


def parse_geometry(feature_collection: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Extract the geometry of the first feature of a GeoJSON FeatureCollection

    Raises:
        ValidationError: when there is no usable geometry
    """
    if not isinstance(feature_collection, dict):
        raise _invalid()
    features = feature_collection.get("features") or []
    if not features:
        raise _invalid("No geometry")

    geometry = features[0].get("geometry") if isinstance(features[0], dict) else None
    if not isinstance(geometry, dict) or geometry.get("type") not in GEOMETRY_TYPES:
        raise _invalid()
    if not geometry.get("coordinates"):
        raise _invalid()
    return {"type": geometry["type"], "coordinates": geometry["coordinates"]}


def coordinates_to_point(coordinates: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Build a GeoJSON point from {lat, lng}; empty input yields no point"""
    if not coordinates:
        return None
    lat, lng = coordinates.get("lat"), coordinates.get("lng")
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in (lat, lng)):
        raise _invalid("Invalid review location")
    return {"type": "Point", "coordinates": [lng, lat]}
