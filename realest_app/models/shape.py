from geoalchemy2.shape import from_shape, to_shape
from shapely.geometry import Point


def convert_location(geom):
    if geom is None:
        return None
    point = to_shape(geom)
    return {
        "latitude": point.y,
        "longitude": point.x
    }


def make_point(latitude: float, longitude: float):
    return from_shape(Point(longitude, latitude), srid=4326)
