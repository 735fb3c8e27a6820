"""Spherical geometry query engine.

Validates, indexes and queries GeoJSON-style geometries on the unit
sphere, including big polygons whose interior covers more than a
hemisphere, and answers ``$geoWithin`` / ``$geoIntersects`` predicates.
"""

__version__ = "0.1.0"
