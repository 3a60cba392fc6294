"""
Windowed, immutable 2D grid.

A Grid wraps a numpy backing store indexed ``[y, x]`` (optionally with
trailing channel axes, so an RGB image is a grid of ``(r, g, b)`` cells) and
exposes it through a window: all coordinates are relative to the window's
origin and bounds-checked against the window's width and height.

Ownership:
    ``Grid(values)`` always copies ``values`` so later changes to the caller's
    buffer cannot leak in. ``Grid._share(store, window)`` never copies and is
    only used for grids this module derives itself (slices, transforms,
    reductions). Backing stores are marked read-only either way.

Traversal order for ``aggregate`` and ``enumerate`` is column-major (outer
loop over x, inner loop over y). Feature vectors are flattened in this order,
so it must not change.
"""

import logging
from typing import Any, Callable, Iterator, Optional, Tuple, TypeVar

import numpy as np

from src.common.types import ImageBuffer, PixelSource, Point, Rect

logger = logging.getLogger(__name__)

TAccumulate = TypeVar("TAccumulate")


class Grid:
    """
    Immutable rectangular table of values with an optional window.

    Example:
        >>> grid = Grid(np.arange(12).reshape(3, 4))  # height 3, width 4
        >>> grid.get(1, 2)  # column 1, row 2
        9
        >>> grid.slice(Rect(left=1, top=1, width=2, height=2)).get(0, 1)
        9
    """

    def __init__(self, values: Any):
        """
        Create a grid that owns a private copy of ``values``.

        Args:
            values: Array-like indexed [y, x] or [y, x, channel].

        Raises:
            ValueError: If values are not at least 2D or have a zero dimension.
        """
        self._initialise(np.array(values, copy=True), window=None, owns_storage=True)

    @classmethod
    def _share(cls, store: np.ndarray, window: Optional[Rect] = None) -> "Grid":
        """Create a grid over ``store`` without copying it."""
        grid = cls.__new__(cls)
        grid._initialise(store, window=window, owns_storage=False)
        return grid

    @classmethod
    def from_pixel_source(cls, source: PixelSource) -> "Grid":
        """
        Build an RGB grid from a pixel source.

        ``ImageBuffer`` instances are converted in one step; other sources are
        read pixel by pixel.
        """
        if isinstance(source, ImageBuffer):
            return cls._share(np.array(source.to_rgb(), dtype=np.uint8, copy=True))

        pixels = np.empty((source.height, source.width, 3), dtype=np.uint8)
        for x in range(source.width):
            for y in range(source.height):
                pixels[y, x] = source.pixel_at(x, y)
        return cls._share(pixels)

    def _initialise(
        self, store: np.ndarray, window: Optional[Rect], owns_storage: bool
    ) -> None:
        if store.ndim < 2:
            raise ValueError(
                f"Grid values must be at least 2D (rows, columns), got shape {store.shape}"
            )
        store_height, store_width = store.shape[:2]
        if store_width == 0 or store_height == 0:
            raise ValueError("zero element arrays are not supported")

        if window is None:
            window = Rect(left=0, top=0, width=store_width, height=store_height)
        elif (
            window.left < 0
            or window.top < 0
            or window.right > store_width
            or window.bottom > store_height
        ):
            raise ValueError(
                f"Window {window} outside backing store of {store_width}x{store_height}"
            )

        if store.flags.writeable:
            store.setflags(write=False)

        self._store = store
        self._window = window
        self._owns_storage = owns_storage

    @property
    def width(self) -> int:
        """Window width, always greater than zero."""
        return self._window.width

    @property
    def height(self) -> int:
        """Window height, always greater than zero."""
        return self._window.height

    @property
    def window(self) -> Rect:
        """Visible sub-rectangle of the backing store."""
        return self._window

    @property
    def owns_storage(self) -> bool:
        """False when the backing store is shared with another grid."""
        return self._owns_storage

    @property
    def cell_shape(self) -> Tuple[int, ...]:
        """Shape of a single cell: () for scalars, (3,) for RGB pixels."""
        return self._store.shape[2:]

    @property
    def dtype(self) -> np.dtype:
        return self._store.dtype

    def get(self, x: int, y: int) -> Any:
        """
        Value at window-relative column x, row y.

        Raises:
            IndexError: If (x, y) lies outside the window.
        """
        if x < 0 or x >= self.width:
            raise IndexError(f"x={x} out of range [0, {self.width})")
        if y < 0 or y >= self.height:
            raise IndexError(f"y={y} out of range [0, {self.height})")
        return self._value_at(x, y)

    def _value_at(self, x: int, y: int) -> Any:
        return _to_value(self._store[self._window.top + y, self._window.left + x])

    def to_array(self) -> np.ndarray:
        """Read-only numpy view of the window, indexed [y, x]."""
        w = self._window
        return self._store[w.top : w.bottom, w.left : w.right]

    def transform(
        self, func: Callable[..., Any], *, pass_position: bool = False
    ) -> "Grid":
        """
        Apply ``func`` to every value, producing a new grid of the same shape.

        Args:
            func: Called as ``func(value)``, or as ``func(value, point, source)``
                when ``pass_position`` is set, where ``point`` is the
                window-relative coordinate and ``source`` is this grid (so
                kernels can read neighbours).
            pass_position: Whether to pass the coordinate and source grid.

        Returns:
            New grid whose window covers its whole backing store.
        """
        rows = [[None] * self.width for _ in range(self.height)]
        for x in range(self.width):
            for y in range(self.height):
                value = self._value_at(x, y)
                if pass_position:
                    rows[y][x] = func(value, Point(x=x, y=y), self)
                else:
                    rows[y][x] = func(value)
        return Grid._share(np.array(rows))

    def apply(self, func: Callable[[np.ndarray], np.ndarray]) -> "Grid":
        """
        Vectorised transform: ``func`` maps the window array to a new array.

        Raises:
            ValueError: If the result does not keep the window's width and height.
        """
        result = np.asarray(func(self.to_array()))
        if result.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"apply must preserve grid shape {(self.height, self.width)}, "
                f"got {result.shape[:2]}"
            )
        return Grid._share(result)

    def slice(self, bounds: Rect) -> "Grid":
        """
        Zero-copy view of ``bounds`` (relative to this grid's window).

        Raises:
            ValueError: If bounds extend outside the window or are empty.
        """
        if (
            bounds.left < 0
            or bounds.right > self.width
            or bounds.top < 0
            or bounds.bottom > self.height
        ):
            raise ValueError(
                f"Slice bounds {bounds} outside {self.width}x{self.height} grid"
            )
        if bounds.width <= 0 or bounds.height <= 0:
            raise ValueError(
                f"zero element arrays are not supported (slice bounds {bounds})"
            )

        return Grid._share(
            self._store,
            window=Rect(
                left=self._window.left + bounds.left,
                top=self._window.top + bounds.top,
                width=bounds.width,
                height=bounds.height,
            ),
        )

    def aggregate(
        self,
        seed: TAccumulate,
        func: Callable[[TAccumulate, Any], TAccumulate],
    ) -> TAccumulate:
        """Fold ``func`` over every value, column by column."""
        for x in range(self.width):
            for y in range(self.height):
                seed = func(seed, self._value_at(x, y))
        return seed

    def enumerate(self) -> Iterator[Tuple[Point, Any]]:
        """
        Yield (point, value) pairs in the same column-major order as
        ``aggregate``. Points are window-relative. Each call starts a fresh
        traversal.
        """
        for x in range(self.width):
            for y in range(self.height):
                yield Point(x=x, y=y), self._value_at(x, y)

    def block_out(
        self,
        block_size: int,
        block_size_fraction_to_move: float,
        reducer: Callable[["Grid"], Any],
    ) -> "Grid":
        """
        Reduce overlapping (or abutting) square blocks to one cell each.

        Blocks of side ``block_size`` start every
        ``block_size * block_size_fraction_to_move`` cells. The output size per
        axis is ``round((dimension - (block_size - distance)) / distance)``, so a
        small leftover strip at the far edge is ignored while a large one gets
        an extra, clipped block.

        Raises:
            ValueError: If block_size is not in [1, min(width, height)] or the
                fraction is not in (0, 1].
        """
        if block_size <= 0:
            raise ValueError(f"block_size must be greater than zero, got {block_size}")
        if block_size > self.width or block_size > self.height:
            raise ValueError(
                f"block_size {block_size} must not be larger than either "
                f"width ({self.width}) or height ({self.height})"
            )
        if block_size_fraction_to_move <= 0 or block_size_fraction_to_move > 1:
            raise ValueError(
                "block_size_fraction_to_move must be greater than zero and no larger "
                f"than one, got {block_size_fraction_to_move}"
            )

        distance = block_size * block_size_fraction_to_move
        new_width = int(round((self.width - (block_size - distance)) / distance))
        new_height = int(round((self.height - (block_size - distance)) / distance))
        logger.debug(
            f"Blocking {self.width}x{self.height} grid with block_size={block_size}, "
            f"distance={distance:.2f} into {new_width}x{new_height}"
        )

        rows = [[None] * new_width for _ in range(new_height)]
        for x in range(new_width):
            for y in range(new_height):
                left = int(round(x * distance))
                top = int(round(y * distance))
                block = self.slice(
                    Rect.from_ltrb(
                        left=left,
                        top=top,
                        right=min(left + block_size, self.width),
                        bottom=min(top + block_size, self.height),
                    )
                )
                rows[y][x] = reducer(block)
        return Grid._share(np.array(rows))

    def __repr__(self) -> str:
        return (
            f"Grid(width={self.width}, height={self.height}, "
            f"cell_shape={self.cell_shape}, dtype={self.dtype})"
        )


def _to_value(cell: Any) -> Any:
    """Unwrap numpy scalars to Python values and pixel rows to tuples."""
    if np.ndim(cell) == 0:
        return cell.item() if hasattr(cell, "item") else cell
    return tuple(cell.tolist())
