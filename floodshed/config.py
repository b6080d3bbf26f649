import json

from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from dataclasses import asdict

from typing import List


@dataclass
class FloodConfig:
    """Parameters for the Priority Flood

    Parameters
    ----------
    correct_drainage : bool, default=False
        Raise cells in depressions to their spill level so that every cell
        drains to the edge of the DEM
    label_no_data : int, default=-1
        Value of cells without a watershed label
    show_progress : bool, default=False
        Display a progress bar while flooding
    """

    correct_drainage: bool = False
    label_no_data: int = -1
    show_progress: bool = False


@dataclass
class AttributeConfig:
    """Parameters for Terrain Attributes

    Parameters
    ----------
    attributes : list of str, default=["slope_degree", "aspect"]
        Attributes computed on the conditioned DEM. Any of 'curvature',
        'planform_curvature', 'profile_curvature', 'aspect',
        'slope_riserun', 'slope_percent', 'slope_radian', 'slope_degree'
    z_scale : float, default=1.0
        Multiplier converting elevation units to cell size units
    no_data : float, default=-99999
        No-data value of the attribute rasters
    """

    attributes: List[str] = field(default_factory=lambda: ["slope_degree", "aspect"])
    z_scale: float = 1.0
    no_data: float = -99999.0


@dataclass
class IndexConfig:
    """Parameters for the SPI and CTI Indices

    Parameters
    ----------
    epsilon : float, default=0.001
        Offset added to flow accumulation and slope before taking the log
    no_data : float, default=-1
        No-data value of the index rasters
    """

    epsilon: float = 0.001
    no_data: float = -1.0


@dataclass
class TerrainConfig:
    """Complete Configuration for Terrain Analysis
    Parameters
    ----------
    flood : FloodConfig
        Configuration for watershed labeling and drainage correction. Run
        help(FloodConfig) for details
    attributes : AttributeConfig
        Configuration for terrain attributes. Run help(AttributeConfig) for
        details
    indices : IndexConfig
        Configuration for SPI and CTI. Run help(IndexConfig) for details

    Examples
    --------
    Create a configuration with default parameters:

    >>> config = TerrainConfig()

    Create a configuration with custom parameters:

    >>> config = TerrainConfig()
    >>> config.flood.correct_drainage = True

    """

    flood: FloodConfig = field(default_factory=FloodConfig)
    attributes: AttributeConfig = field(default_factory=AttributeConfig)
    indices: IndexConfig = field(default_factory=IndexConfig)

    def to_dict(self):
        """Convert the entire config to a nested dictionary"""

        def _convert_to_dict(obj):
            """Helper function to recursively convert nested dataclasses to dictionaries"""
            if hasattr(obj, "__dataclass_fields__"):
                # It's a dataclass
                result = {}
                for key, value in asdict(obj).items():
                    result[key] = _convert_to_dict(value)
                return result
            elif isinstance(obj, (list, tuple)):
                return [_convert_to_dict(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: _convert_to_dict(v) for k, v in obj.items()}
            else:
                return obj

        return _convert_to_dict(self)

    @classmethod
    def from_dict(cls, params: dict) -> "TerrainConfig":
        """Build a config from a (possibly partial) nested dictionary, e.g. a
        parsed TOML parameter file"""
        sections = {
            "flood": FloodConfig,
            "attributes": AttributeConfig,
            "indices": IndexConfig,
        }
        unknown = set(params) - set(sections)
        if unknown:
            raise ValueError(f"Unknown config sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = params.get(name, {})
            allowed = {f.name for f in fields(section_cls)}
            bad = set(values) - allowed
            if bad:
                raise ValueError(f"Unknown parameters in [{name}]: {sorted(bad)}")
            kwargs[name] = section_cls(**values)
        return cls(**kwargs)

    def __str__(self) -> str:
        """Convert the config to a string"""
        return json.dumps(self.to_dict(), indent=4)
