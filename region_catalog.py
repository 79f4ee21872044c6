"""
Region catalog built from CSV rows with embedded WKT geometry.

Each row becomes a Region when its geometry column yields at least one
ring. Rows without usable polygon geometry are dropped here, once, so the
rest of the game never sees them.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPolygon

from wkt_parser import NUMBER, LatLon, parse_point, parse_polygon, rings_to_geometry

logger = logging.getLogger(__name__)

_ROUND_KEY_RE = re.compile(NUMBER)


@dataclass(frozen=True)
class CatalogColumns:
    """CSV column names for each Region field."""
    name: str = "region_name"
    center: str = "Center_Coord"
    geometry: str = "geometry"
    prefecture: str = "N03_001"
    areas: str = "prefectures"
    round_keys: Tuple[str, ...] = ("area1", "area2", "area3")
    areas_separator: str = "・"


@dataclass(frozen=True)
class Region:
    """A selectable map region."""
    name: str
    polygon: Tuple[Tuple[LatLon, ...], ...]  # rings of (lat, lon)
    center: Optional[LatLon] = None
    round_keys: Tuple[Optional[float], ...] = (None, None, None)
    prefecture: str = ""
    areas: Tuple[str, ...] = field(default_factory=tuple)

    def round_key(self, round_number: int) -> Optional[float]:
        """
        Get the die value this region matches at a round.

        Args:
            round_number: 1-based round number

        Returns:
            Round key, or None when the region has none for that round
        """
        index = round_number - 1
        if 0 <= index < len(self.round_keys):
            return self.round_keys[index]
        return None

    @property
    def geometry(self) -> Optional[MultiPolygon]:
        """Shapely geometry in (lon, lat) order."""
        return rings_to_geometry(self.polygon)


def _cell(row: Mapping[str, str], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def parse_round_key(text: str) -> Optional[float]:
    """Convert round-key text to a number; blank or non-numeric means unset."""
    if not text or not _ROUND_KEY_RE.fullmatch(text):
        return None
    return float(text)


def region_from_row(row: Mapping[str, str], columns: CatalogColumns) -> Optional[Region]:
    """
    Build a Region from one CSV row.

    Args:
        row: Column name -> cell text
        columns: Column layout

    Returns:
        Region, or None if the row has no usable polygon geometry
    """
    rings = parse_polygon(_cell(row, columns.geometry))
    if not rings:
        return None

    areas_text = _cell(row, columns.areas)
    areas = tuple(a.strip() for a in areas_text.split(columns.areas_separator) if a.strip())

    return Region(
        name=_cell(row, columns.name),
        polygon=tuple(tuple(ring) for ring in rings),
        center=parse_point(_cell(row, columns.center)),
        round_keys=tuple(parse_round_key(_cell(row, c)) for c in columns.round_keys),
        prefecture=_cell(row, columns.prefecture),
        areas=areas,
    )


class RegionCatalog:
    """
    Read-only, ordered collection of Regions.

    Built once at startup and shared with any number of game sessions.
    """

    def __init__(self, regions: Iterable[Region]):
        """
        Initialize catalog.

        Args:
            regions: Regions in display order
        """
        self._regions: Tuple[Region, ...] = tuple(regions)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, str]],
        columns: Optional[CatalogColumns] = None,
    ) -> "RegionCatalog":
        """
        Build a catalog from tokenized CSV rows.

        Rows whose geometry cannot be parsed are skipped; input order is
        kept for the rest.

        Args:
            rows: Mappings of column name -> cell text
            columns: Column layout (default: CatalogColumns())

        Returns:
            New RegionCatalog
        """
        columns = columns or CatalogColumns()

        regions = []
        dropped = 0
        for index, row in enumerate(rows):
            region = region_from_row(row, columns)
            if region is None:
                dropped += 1
                logger.debug("Dropping row %d: no usable geometry", index)
                continue
            regions.append(region)

        if dropped:
            logger.info("Dropped %d rows without polygon geometry", dropped)
        logger.info("Loaded %d regions", len(regions))

        return cls(regions)

    @classmethod
    def from_csv(cls, csv_path, columns: Optional[CatalogColumns] = None) -> "RegionCatalog":
        """
        Load a catalog from a CSV file.

        Args:
            csv_path: Path to the CSV file
            columns: Column layout (default: CatalogColumns())

        Returns:
            New RegionCatalog
        """
        csv_path = Path(csv_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"Region CSV not found: {csv_path}")

        logger.info("Reading regions from %s", csv_path)
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
        return cls.from_rows(df.to_dict(orient="records"), columns)

    @property
    def regions(self) -> Tuple[Region, ...]:
        return self._regions

    def names(self) -> List[str]:
        return [region.name for region in self._regions]

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        """
        Export regions as a GeoDataFrame (EPSG:4326, lon/lat axis order).

        Returns:
            GeoDataFrame with name, prefecture, round key columns and geometry
        """
        key_count = len(self._regions[0].round_keys) if self._regions else 3
        key_columns = [f"round_key_{i}" for i in range(1, key_count + 1)]

        records = []
        for region in self._regions:
            record = {"name": region.name, "prefecture": region.prefecture}
            record.update(zip(key_columns, region.round_keys))
            record["geometry"] = region.geometry
            records.append(record)

        df = pd.DataFrame(records, columns=["name", "prefecture", *key_columns, "geometry"])
        return gpd.GeoDataFrame(df, geometry="geometry", crs="EPSG:4326")

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def __getitem__(self, index: int) -> Region:
        return self._regions[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RegionCatalog):
            return NotImplemented
        return self._regions == other._regions

    def __repr__(self) -> str:
        return f"RegionCatalog({len(self._regions)} regions)"
