"""
Static map rendering of a game session.

Draws every catalog region faintly, highlights the survivors and marks the
map focus. Used by the session CLI in place of an interactive map.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from region_catalog import Region, RegionCatalog
from wkt_parser import LatLon

PADDING_DEGREES = 0.5


def survivor_bounds(survivors: Sequence[Region]):
    """
    Bounding box of the survivors' geometry.

    Returns:
        (min_lon, min_lat, max_lon, max_lat), or None if nothing to bound
    """
    geometries = [r.geometry for r in survivors]
    boxes = [g.bounds for g in geometries if g is not None]
    if not boxes:
        return None
    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )


def survivor_mask(catalog: RegionCatalog, survivors: Sequence[Region]) -> List[bool]:
    """
    Flag the catalog rows that are survivors.

    Matches by identity, not by name: region names need not be unique.

    Returns:
        One bool per catalog region, in catalog order
    """
    survivor_ids = {id(r) for r in survivors}
    return [id(r) in survivor_ids for r in catalog]


def render_regions(
    catalog: RegionCatalog,
    survivors: Sequence[Region],
    output_path,
    focus: Optional[LatLon] = None,
    title: Optional[str] = None,
    highlight_color: str = "#00a8ff",
    base_color: str = "#3a3a3a",
    fill_alpha: float = 0.3,
    figsize=(8, 8),
    dpi: int = 100,
) -> Path:
    """
    Render catalog regions with survivors highlighted.

    Args:
        catalog: All regions (drawn as background)
        survivors: Regions to highlight
        output_path: PNG path to write
        focus: (lat, lon) to mark, if any
        title: Figure title
        highlight_color: Survivor outline/fill color
        base_color: Background region color
        fill_alpha: Survivor fill opacity
        figsize: Matplotlib figure size in inches
        dpi: Output resolution

    Returns:
        Path of the written image
    """
    if len(catalog) == 0:
        raise ValueError("Cannot render an empty region catalog")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    gdf = catalog.to_geodataframe()
    gdf["survivor"] = survivor_mask(catalog, survivors)
    gdf = gdf[gdf.geometry.notna()]
    highlighted = gdf[gdf["survivor"]]

    fig, ax = plt.subplots(figsize=figsize)
    fig.patch.set_facecolor("#242424")
    ax.set_facecolor("#242424")

    if not gdf.empty:
        gdf.plot(ax=ax, color=base_color, edgecolor="#555555", linewidth=0.5)
    if not highlighted.empty:
        highlighted.plot(
            ax=ax,
            color=highlight_color,
            alpha=fill_alpha,
            edgecolor=highlight_color,
            linewidth=2,
        )

    if focus is not None:
        lat, lon = focus
        ax.plot(lon, lat, marker="o", color="white", markersize=6)

    bounds = survivor_bounds(survivors)
    if bounds is not None:
        min_lon, min_lat, max_lon, max_lat = bounds
        ax.set_xlim(min_lon - PADDING_DEGREES, max_lon + PADDING_DEGREES)
        ax.set_ylim(min_lat - PADDING_DEGREES, max_lat + PADDING_DEGREES)

    ax.set_aspect("equal")
    ax.axis("off")
    if title:
        ax.set_title(title, color="white", fontsize=14)

    plt.tight_layout()
    plt.savefig(output_path, dpi=dpi, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return output_path
