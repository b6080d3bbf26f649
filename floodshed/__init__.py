# floodshed/__init__.py
"""
floodshed: Priority flood watershed labeling and drainage correction

This package provides tools for hydrologic terrain analysis of single band
digital elevation models.

Main Functions
-------------
find_watersheds : Label watersheds, optionally filling depressions
fill_depressions : Raise depressions to their spill level
watershed_area : Cell count and area of each watershed
terrain_attribute : Slope, aspect and curvatures
spi, cti : Stream power and compound topographic indices
analyze_terrain : Run the complete workflow on a raster

"""

from loguru import logger

from .grid import Grid
from .basin import TerrainData
from .config import TerrainConfig
from .config import FloodConfig
from .config import AttributeConfig
from .config import IndexConfig
from .exceptions import FloodshedError
from .exceptions import InvalidGridError
from .exceptions import DimensionMismatchError
from .exceptions import GridAllocationError
from .exceptions import FloodInvariantError
from .flood.watershed import find_watersheds
from .flood.watershed import fill_depressions
from .report.areas import watershed_area
from .terrain.attributes import terrain_attribute
from .terrain.indices import spi
from .terrain.indices import cti
from .core import analyze_terrain

logger.disable("floodshed")

__all__ = [
    # main
    "analyze_terrain",
    # Configuration
    "TerrainConfig",
    "FloodConfig",
    "AttributeConfig",
    "IndexConfig",
    # Core data structures
    "Grid",
    "TerrainData",
    # Main analytical functions
    "find_watersheds",
    "fill_depressions",
    "watershed_area",
    "terrain_attribute",
    "spi",
    "cti",
    # Errors
    "FloodshedError",
    "InvalidGridError",
    "DimensionMismatchError",
    "GridAllocationError",
    "FloodInvariantError",
]

__version__ = "0.1.0"
