"""
Parser for the WKT subset used in the region CSV files.

Handles POINT, POLYGON and MULTIPOLYGON text (single ring per polygon, no
holes). Source text is in (lon, lat) order; everything returned here is in
(lat, lon) order, the order map widgets expect.

Upstream data is untrusted, so parse functions never raise: unrecognized
text yields None and malformed coordinate pairs are dropped.
"""

import re
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import MultiPolygon, Polygon

LatLon = Tuple[float, float]
Ring = List[LatLon]

# ASCII digits only; full-width digits such as "３" are not numbers here
NUMBER = r"[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?"

_NUMBER_RE = re.compile(NUMBER)
_POINT_RE = re.compile(rf"POINT\s*\(\s*({NUMBER})\s+({NUMBER})\s*\)")
_POLYGON_RE = re.compile(r"POLYGON\s*\(\((.*?)\)\)", re.DOTALL)
_MULTIPOLYGON_RE = re.compile(r"MULTIPOLYGON\s*\(\((.*)\)\)", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def parse_point(text: Optional[str]) -> Optional[LatLon]:
    """
    Parse a `POINT (<lon> <lat>)` string.

    Args:
        text: WKT point text, possibly empty

    Returns:
        (lat, lon) tuple, or None if the text is empty or does not match
    """
    if not text:
        return None

    match = _POINT_RE.search(text)
    if match is None:
        return None

    lon, lat = float(match.group(1)), float(match.group(2))
    return (lat, lon)


def _parse_pair(pair: str) -> Optional[LatLon]:
    parts = pair.strip().split(" ")
    if len(parts) != 2:
        return None
    if not all(_NUMBER_RE.fullmatch(p) for p in parts):
        return None

    lon, lat = float(parts[0]), float(parts[1])
    return (lat, lon)


def parse_coordinate_list(text: str) -> Ring:
    """
    Parse a comma-separated list of "lon lat" pairs.

    Pairs that do not split into exactly two numbers are skipped; the rest
    keep their input order.

    Args:
        text: Coordinate text, e.g. "139.6 35.6, 139.7 35.7"

    Returns:
        List of (lat, lon) tuples (may be empty)
    """
    clean = _WHITESPACE_RE.sub(" ", text).strip()

    coords = []
    for pair in clean.split(","):
        coord = _parse_pair(pair)
        if coord is not None:
            coords.append(coord)
    return coords


def split_multipolygon_rings(content: str) -> List[str]:
    """
    Split MULTIPOLYGON body text into per-ring coordinate text.

    Scans character by character tracking parenthesis depth. Characters seen
    while depth > 0 are buffered; a closing paren that brings depth back to
    zero flushes the buffer as one ring. Commas inside a coordinate list
    never split a ring.

    Args:
        content: Text between the outermost `((` and `))` of a MULTIPOLYGON

    Returns:
        Raw coordinate text of each ring, in order
    """
    rings = []
    buffer = []
    depth = 0

    for char in content:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and buffer:
                rings.append("".join(buffer))
                buffer = []
        elif depth > 0:
            buffer.append(char)

    return rings


def parse_polygon(text: Optional[str]) -> Optional[List[Ring]]:
    """
    Parse POLYGON or MULTIPOLYGON text into rings.

    Args:
        text: WKT polygon text, possibly empty

    Returns:
        List of rings (each a list of (lat, lon)), or None when no ring
        with at least one valid coordinate could be recovered
    """
    if not text:
        return None

    geometry = text.strip()

    if geometry.startswith("MULTIPOLYGON"):
        match = _MULTIPOLYGON_RE.search(geometry)
        if match is None:
            return None

        rings = []
        for ring_text in split_multipolygon_rings(match.group(1)):
            coords = parse_coordinate_list(ring_text)
            if coords:
                rings.append(coords)
        return rings or None

    if geometry.startswith("POLYGON"):
        match = _POLYGON_RE.search(geometry)
        if match is None:
            return None

        coords = parse_coordinate_list(match.group(1))
        if not coords:
            return None
        return [coords]

    return None


def _format_coords(ring: Sequence[LatLon]) -> str:
    return ", ".join(f"{lon!r} {lat!r}" for lat, lon in ring)


def format_point(point: LatLon) -> str:
    """Serialize a (lat, lon) point back to `POINT (lon lat)` text."""
    lat, lon = point
    return f"POINT ({lon!r} {lat!r})"


def format_polygon(rings: Sequence[Sequence[LatLon]]) -> str:
    """
    Serialize rings back to WKT text.

    A single ring becomes a POLYGON, several rings a MULTIPOLYGON with one
    polygon per ring.
    """
    if len(rings) == 1:
        return f"POLYGON (({_format_coords(rings[0])}))"
    groups = ",".join(f"(({_format_coords(ring)}))" for ring in rings)
    return f"MULTIPOLYGON ({groups})"


def rings_to_geometry(rings: Sequence[Sequence[LatLon]]) -> Optional[MultiPolygon]:
    """
    Convert (lat, lon) rings to a shapely MultiPolygon in (lon, lat) order.

    Rings with fewer than three vertices cannot form a polygon and are
    skipped.

    Args:
        rings: Rings as returned by parse_polygon

    Returns:
        MultiPolygon, or None if no ring is usable
    """
    polygons = [
        Polygon([(lon, lat) for lat, lon in ring])
        for ring in rings
        if len(ring) >= 3
    ]
    if not polygons:
        return None
    return MultiPolygon(polygons)
