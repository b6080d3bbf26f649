from dataclasses import dataclass
from dataclasses import field
from typing import Dict, Optional

import pandas as pd
import xarray as xr


@dataclass
class TerrainData:
    dem: xr.DataArray

    conditioned_dem: xr.DataArray
    watersheds: xr.DataArray
    areas: pd.DataFrame

    attributes: Dict[str, xr.DataArray] = field(default_factory=dict)

    spi: Optional[xr.DataArray] = None
    cti: Optional[xr.DataArray] = None
