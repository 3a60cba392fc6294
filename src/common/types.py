"""
Shared geometric and image types for the slide matching pipeline.

Pydantic models describe what flows between stages: decoded images
(``ImageBuffer``), grid and pixel coordinates (``Point``), grid windows
(``Rect``) and slide corners (``Quadrilateral``). All of them convert to and
from numpy arrays for the OpenCV and numpy code that consumes them.
"""

from typing import Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np
from pydantic import BaseModel, Field, field_validator

RGB = Tuple[int, int, int]


@runtime_checkable
class PixelSource(Protocol):
    """Anything that exposes a decoded RGB image pixel by pixel."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def pixel_at(self, x: int, y: int) -> RGB: ...


class ImageBuffer(BaseModel):
    """
    A decoded frame or slide image held as a uint8 numpy array.

    Decoders hand over RGB, greyscale or RGBA arrays; ``to_rgb`` and
    ``pixel_at`` always answer in RGB so the rest of the pipeline never
    branches on channel count.

    Example:
        >>> frame = ImageBuffer(data=np.zeros((1080, 1920, 3), dtype=np.uint8))
        >>> frame.width, frame.height
        (1920, 1080)
        >>> frame.pixel_at(10, 20)
        (0, 0, 0)
    """

    data: np.ndarray = Field(..., description="Pixels indexed [row, column(, channel)]")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _check_pixels(cls, v: np.ndarray) -> np.ndarray:
        if v.size == 0:
            raise ValueError("Image array is empty")
        if v.ndim not in (2, 3):
            raise ValueError(f"Expected 2D (grey) or 3D (colour) pixels, got shape {v.shape}")
        if v.ndim == 3 and v.shape[2] not in (1, 3, 4):
            raise ValueError(f"Unsupported number of channels: {v.shape[2]}")
        if v.dtype != np.uint8:
            raise ValueError(f"Pixels must be uint8 (0-255), got {v.dtype}")
        return v

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def height(self) -> int:
        """Rows in the image."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Columns in the image."""
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """1 for grey, 3 for RGB, 4 for RGBA."""
        return 1 if self.data.ndim == 2 else int(self.data.shape[2])

    def to_rgb(self) -> np.ndarray:
        """
        The image as an (H, W, 3) RGB array.

        Grey pixels are repeated across the three channels and alpha is dropped.
        """
        if self.channels == 1:
            grey = self.data.reshape(self.height, self.width)
            return np.repeat(grey[:, :, np.newaxis], 3, axis=2)
        return self.data[:, :, :3]

    def pixel_at(self, x: int, y: int) -> RGB:
        """The (r, g, b) colour at column x, row y."""
        if not (0 <= x < self.width) or not (0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} image"
            )
        pixel = self.data[y, x]
        if self.channels == 1:
            v = int(np.asarray(pixel).reshape(-1)[0])
            return v, v, v
        r, g, b = pixel[:3]
        return int(r), int(g), int(b)

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height}, channels={self.channels})"


class Point(BaseModel):
    """
    Integer (x, y) position: a grid cell, or a pixel in a full-size frame.

    Frozen, so points can be collected in sets and compared by value.
    Fractional input is rounded to the nearest integer.

    Example:
        >>> Point(x=1.6, y=2.2)
        Point(x=2, y=2)
    """

    x: int = Field(..., description="Column")
    y: int = Field(..., description="Row")

    model_config = {"frozen": True}

    @field_validator("x", "y", mode="before")
    @classmethod
    def _round_coordinate(cls, v: Union[int, float]) -> int:
        if isinstance(v, (int, float, np.integer, np.floating)):
            return int(round(float(v)))
        raise ValueError(f"Coordinate must be numeric, got {type(v)}")

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        return np.array(self.to_tuple(), dtype=dtype)

    def to_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"


class Rect(BaseModel):
    """
    Axis-aligned rectangle given by its top-left corner and size.

    Unlike a bounding box this does not validate that width and height are
    positive; callers that need a non-empty area check it themselves.

    Example:
        >>> rect = Rect(left=2, top=3, width=4, height=5)
        >>> print(rect.right, rect.bottom)  # 6, 8
    """

    left: int
    top: int
    width: int
    height: int

    model_config = {"frozen": True}

    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> "Rect":
        """Create Rect from left/top/right/bottom edges (right and bottom exclusive)."""
        return cls(left=left, top=top, width=right - left, height=bottom - top)

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.left + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.top + self.height

    def __repr__(self) -> str:
        return (
            f"Rect(left={self.left}, top={self.top}, "
            f"width={self.width}, height={self.height})"
        )


class Quadrilateral(BaseModel):
    """
    Four corners of a perspective-distorted rectangle.

    The order is load-bearing: TL->TR and BL->BR are the "horizontal" edges
    used to build the columns of a rectified image, TL->BL and TR->BR the
    "vertical" edges that determine its height. A quadrilateral with every
    corner at the origin is the "no region found" sentinel.

    Example:
        >>> quad = Quadrilateral.from_points([[0, 0], [10, 0], [10, 5], [0, 5]])
        >>> quad.is_empty  # False
        >>> Quadrilateral.empty().is_empty  # True
    """

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    model_config = {"frozen": True}

    @classmethod
    def empty(cls) -> "Quadrilateral":
        """The sentinel returned when no region could be located."""
        origin = Point(x=0, y=0)
        return cls(
            top_left=origin, top_right=origin, bottom_right=origin, bottom_left=origin
        )

    @classmethod
    def from_points(cls, points: Union[np.ndarray, Sequence[Sequence[float]]]) -> "Quadrilateral":
        """
        Create a Quadrilateral from four [x, y] pairs already in TL, TR, BR, BL order.

        Raises:
            ValueError: If the input does not have shape (4, 2).
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.shape != (4, 2):
            raise ValueError(
                f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
            )
        tl, tr, br, bl = (Point(x=p[0], y=p[1]) for p in pts)
        return cls(top_left=tl, top_right=tr, bottom_right=br, bottom_left=bl)

    @classmethod
    def from_unordered(cls, points: Union[np.ndarray, Sequence[Sequence[float]]]) -> "Quadrilateral":
        """Create a Quadrilateral from four corners given in any order."""
        from src.rectification.corners import order_corners

        return cls.from_points(order_corners(points))

    @property
    def corners(self) -> Tuple[Point, Point, Point, Point]:
        """Corners in TL, TR, BR, BL order."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    @property
    def is_empty(self) -> bool:
        """True for the "no region found" sentinel."""
        return self == Quadrilateral.empty()

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Corners as a (4, 2) array in TL, TR, BR, BL order."""
        return np.array([p.to_tuple() for p in self.corners], dtype=dtype)

    def __repr__(self) -> str:
        return (
            f"Quadrilateral(TL={self.top_left.to_tuple()}, TR={self.top_right.to_tuple()}, "
            f"BR={self.bottom_right.to_tuple()}, BL={self.bottom_left.to_tuple()})"
        )
