"""Read-only Lanelet2 map model and loader."""

from map_validator.map_model.lanelet_map import (
    BoundingBox2d,
    Lanelet,
    LaneletMap,
    LineString3d,
    Point3d,
    Polygon3d,
    RegulatoryElement,
)
from map_validator.map_model.osm_loader import load_lanelet_map, parse_lanelet_map

__all__ = [
    "BoundingBox2d",
    "Lanelet",
    "LaneletMap",
    "LineString3d",
    "Point3d",
    "Polygon3d",
    "RegulatoryElement",
    "load_lanelet_map",
    "parse_lanelet_map",
]
