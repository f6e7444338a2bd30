from transit_explorer.models import Coordinate


def decode_polyline(encoded: str) -> list[list[float]]:
    """Decode a Google-style encoded polyline to [lng, lat] coords."""
    coords = []
    index = 0
    lat = 0
    lng = 0

    while index < len(encoded):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lng += deltas[1]
        coords.append([lng / 1e5, lat / 1e5])

    return coords


def leg_geometry(encoded: str, start: Coordinate, end: Coordinate) -> dict:
    """GeoJSON LineString for a leg, falling back to a straight line when no polyline decodes."""
    coordinates = []
    if encoded:
        try:
            coordinates = decode_polyline(encoded)
        except IndexError:
            # truncated polyline
            coordinates = []
    if len(coordinates) < 2:
        coordinates = [[start.lng, start.lat], [end.lng, end.lat]]
    return {"type": "LineString", "coordinates": coordinates}
