"""
Dense 2D raster container shared by the flood engine and the terrain tools.

A grid stores its values as a numpy array of shape (height, width) and is
indexed by (x, y), where x is the column and y is the row. Every grid carries
the spatial metadata needed to allocate congruent output grids: width,
height, cell size and a no-data sentinel.
"""

import numpy as np
import rioxarray  # noqa: F401 registers the .rio accessor
import xarray as xr

from floodshed.exceptions import DimensionMismatchError
from floodshed.exceptions import GridAllocationError
from floodshed.exceptions import InvalidGridError


class Grid:
    def __init__(self, data, cellsize=1.0, no_data=None):
        data = np.asarray(data)
        if data.ndim != 2:
            raise InvalidGridError(f"Grid data must be 2D, got {data.ndim}D")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise InvalidGridError(f"Grid must not be empty, got shape {data.shape}")
        if not np.isfinite(cellsize) or cellsize <= 0:
            raise InvalidGridError(f"Cell size must be positive, got {cellsize}")

        self.data = data
        self.cellsize = float(cellsize)
        self.no_data = no_data

    def __repr__(self):
        return (
            f"Grid(width={self.width}, height={self.height}, "
            f"cellsize={self.cellsize}, no_data={self.no_data}, dtype={self.dtype})"
        )

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    @property
    def dtype(self):
        return self.data.dtype

    @property
    def size(self) -> int:
        return self.data.size

    def in_grid(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x, y):
        if not self.in_grid(x, y):
            raise IndexError(
                f"Cell ({x}, {y}) is outside a {self.width}x{self.height} grid"
            )

    def __getitem__(self, xy):
        x, y = xy
        self._check_bounds(x, y)
        return self.data[y, x]

    def __setitem__(self, xy, value):
        x, y = xy
        self._check_bounds(x, y)
        self.data[y, x] = value

    def nodata_is_nan(self) -> bool:
        return self.no_data is not None and bool(np.isnan(self.no_data))

    def is_no_data(self, x: int, y: int) -> bool:
        value = self[x, y]
        if value != value:
            return True
        if self.no_data is None or self.nodata_is_nan():
            return False
        return bool(value == self.no_data)

    def no_data_mask(self) -> np.ndarray:
        """Boolean array, True where the cell holds the no-data sentinel

        NaN is always treated as no-data in floating point grids.
        """
        if np.issubdtype(self.dtype, np.floating):
            mask = np.isnan(self.data)
        else:
            mask = np.zeros(self.shape, dtype=bool)
        if self.no_data is not None and not self.nodata_is_nan():
            mask |= self.data == self.no_data
        return mask

    def data_mask(self) -> np.ndarray:
        return ~self.no_data_mask()

    def copy(self) -> "Grid":
        return Grid(self.data.copy(), self.cellsize, self.no_data)

    @classmethod
    def like(cls, source: "Grid", dtype=None, no_data=None, fill=None) -> "Grid":
        """
        Allocate a new grid with the extent and cell size of source.

        Parameters
        ----------
        source: Grid
            Grid whose spatial metadata is copied
        dtype: numpy dtype, optional
            Value type of the new grid, defaults to the source dtype
        no_data: optional
            No-data sentinel of the new grid
        fill: optional
            Initial value of every cell, defaults to no_data (or zero when
            no_data is None)

        Returns
        -------
        Grid
        """
        dtype = source.dtype if dtype is None else dtype
        if fill is None:
            fill = 0 if no_data is None else no_data
        try:
            data = np.full(source.shape, fill, dtype=dtype)
        except MemoryError as e:
            raise GridAllocationError(
                f"Could not allocate a {source.width}x{source.height} "
                f"{np.dtype(dtype).name} grid"
            ) from e
        return cls(data, source.cellsize, no_data)

    @classmethod
    def from_dataarray(cls, raster: xr.DataArray) -> "Grid":
        """
        Wrap a single band rioxarray raster. The grid shares the raster's
        buffer, so in-place edits to the grid are visible through the raster.
        """
        raster = raster.squeeze()
        if raster.ndim != 2:
            raise InvalidGridError(
                f"Expected a single band raster, got dims {raster.dims}"
            )
        xres, yres = raster.rio.resolution()
        if not np.isclose(abs(xres), abs(yres)):
            raise InvalidGridError(
                f"Cells must be square, got resolution ({xres}, {yres})"
            )
        no_data = raster.rio.nodata
        if no_data is None:
            no_data = raster.rio.encoded_nodata
        return cls(raster.values, abs(xres), no_data)

    def to_dataarray(self, template: xr.DataArray) -> xr.DataArray:
        """Copy this grid into a raster with the coordinates of template"""
        template = template.squeeze()
        if template.shape != self.shape:
            raise DimensionMismatchError(
                f"Template shape {template.shape} does not match grid shape {self.shape}"
            )
        raster = template.copy(data=self.data.copy())
        # drop the template's on-disk dtype and fill value
        raster.encoding = {}
        raster.attrs.pop("_FillValue", None)
        if self.no_data is not None:
            raster = raster.rio.write_nodata(self.no_data, encoded=False)
        return raster


def check_same_extent(a: Grid, b: Grid):
    """Refuse to combine grids of different extent"""
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"Grids have unequal dimensions: {a.width}x{a.height} and {b.width}x{b.height}"
        )
