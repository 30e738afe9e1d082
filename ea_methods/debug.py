"""Debug output of intermediate layers.

Set DEBUG_OUTPUT=true to dump layers such as the intensity fragments to
GeoPackages under DEBUG_OUTPUT_DIR/<run id>/, for inspection in a GIS.
For local development only.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path

import geopandas as gpd

from ea_methods.config import DebugConfig

logger = logging.getLogger(__name__)


def save_debug_gdf(
    gdf: gpd.GeoDataFrame,
    name: str,
    run_id: str | None = None,
    config: DebugConfig | None = None,
) -> Path | None:
    """Write a layer to <output_dir>/<run_id>/<HHMMSS>_<name>.gpkg when debugging is on.

    Debug output never interrupts a run: write failures are logged and ignored.

    Args:
        gdf: Layer to save
        name: Layer name (e.g. "intensity_fragments")
        run_id: Sub-directory grouping the layers of one run (default: today's date)
        config: Debug configuration (default: read from the environment)

    Returns:
        Path of the written file, or None when nothing was written
    """
    config = config or DebugConfig.from_env()
    if not config.enabled:
        return None

    now = datetime.now(UTC)
    run_dir = config.output_dir / (run_id or now.strftime("%Y%m%d"))
    path = run_dir / f"{now:%H%M%S}_{name}.gpkg"

    try:
        run_dir.mkdir(parents=True, exist_ok=True)
        gdf.to_file(path, driver="GPKG")
    except Exception as e:
        logger.warning(f"Could not write debug layer {name}: {e}")
        return None

    logger.debug(f"Debug layer {name}: {len(gdf)} features -> {path}")
    return path
