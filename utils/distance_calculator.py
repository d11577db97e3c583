# ==================== UTILS/DISTANCE_CALCULATOR.PY ====================
import math

from geopy.distance import geodesic

KM_PER_DEGREE_LAT = 111.32


class DistanceCalculator:
    """Geodesic distance helpers for radius search"""

    @staticmethod
    def get_distance_km(lat1, lng1, lat2, lng2):
        """Get distance in kilometers"""
        coord1 = (float(lat1), float(lng1))
        coord2 = (float(lat2), float(lng2))
        return geodesic(coord1, coord2).km

    @staticmethod
    def bounding_box(lat, lng, radius_km):
        """Return (min_lat, max_lat, min_lng, max_lng) enclosing the radius.

        Used to narrow the database query before exact geodesic filtering.
        """
        lat = float(lat)
        lng = float(lng)
        lat_delta = radius_km / KM_PER_DEGREE_LAT
        cos_lat = math.cos(math.radians(lat))
        if cos_lat < 1e-6:
            lng_delta = 180.0
        else:
            lng_delta = min(radius_km / (KM_PER_DEGREE_LAT * cos_lat), 180.0)
        return lat - lat_delta, lat + lat_delta, lng - lng_delta, lng + lng_delta

    @staticmethod
    def longitude_ranges(min_lng, max_lng):
        """Split a longitude span crossing the antimeridian into in-range pieces"""
        if max_lng - min_lng >= 360:
            return [(-180.0, 180.0)]
        if min_lng < -180:
            return [(min_lng + 360, 180.0), (-180.0, max_lng)]
        if max_lng > 180:
            return [(min_lng, 180.0), (-180.0, max_lng - 360)]
        return [(min_lng, max_lng)]

    @staticmethod
    def filter_within_radius(locations, lat, lng, radius_km):
        """Annotate each location with distance_km and keep those inside the radius"""
        nearby = []
        for location in locations:
            distance = DistanceCalculator.get_distance_km(
                lat, lng, location.latitude, location.longitude
            )
            if distance <= radius_km:
                location.distance_km = round(distance, 2)
                nearby.append(location)
        return nearby
