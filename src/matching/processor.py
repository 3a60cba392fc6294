"""
Main processor for the Matching module.

Orchestrates the complete pipeline:
1. Locate the projected slide once (from the first usable sampled frame)
2. Rectify and vectorise every reference slide once
3. Rectify and vectorise every frame in parallel
4. Match each frame to its nearest reference slide

The located quadrilateral and the reference vectors are computed exactly
once and then shared read-only between worker threads.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from src.common.types import Quadrilateral
from src.features import get_vector
from src.grid import Grid
from src.matching.config_loader import load_config
from src.matching.distance import get_distance_function
from src.matching.types import FrameMatch, MatchingConfig
from src.rectification import (
    extract_and_perspective_correct,
    fit_to_projection,
    get_projection_size,
)
from src.region import locate_illuminated_area
from src.utils.once import OnceCell

logger = logging.getLogger(__name__)

FrameSource = Union[Grid, Callable[[], Grid]]
ProjectionSink = Callable[[int, Grid], None]
ReferenceVectors = List[Tuple[str, np.ndarray]]


def _load(source: FrameSource) -> Grid:
    return source if isinstance(source, Grid) else source()


class SlideMatcher:
    """
    Matches video frames to the reference slides they show.

    Example:
        >>> matcher = SlideMatcher()
        >>> for path in slide_paths:
        ...     matcher.add_reference(path.stem, Grid.from_pixel_source(load_image(path)))
        >>> matches = matcher.match_frames(
        ...     [(index, lambda p=path: Grid.from_pixel_source(load_image(p)))
        ...      for index, path in frame_paths]
        ... )
        >>> for match in matches:
        ...     print(match)  # Frame 300: slide_01
    """

    def __init__(
        self,
        config: Optional[MatchingConfig] = None,
        config_path: Optional[Path] = None,
        quadrilateral: Optional[Quadrilateral] = None,
        projection_sink: Optional[ProjectionSink] = None,
    ):
        """
        Initialize the slide matcher.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
            quadrilateral: Known slide corners. If None, they are located from
                the first frames processed.
            projection_sink: Optional callback receiving every rectified frame.

        Raises:
            ValueError: If ``quadrilateral`` is the empty sentinel.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

        if quadrilateral is not None:
            if quadrilateral.is_empty:
                raise ValueError("A supplied quadrilateral must not be empty")
            self._quadrilateral: OnceCell[Quadrilateral] = OnceCell.of(quadrilateral)
        else:
            self._quadrilateral = OnceCell()

        self._distance = get_distance_function(self.config.matching.distance_metric)
        self._projection_sink = projection_sink
        self._references: Dict[str, FrameSource] = {}
        self._reference_vectors: OnceCell[ReferenceVectors] = OnceCell()

    @property
    def quadrilateral(self) -> Optional[Quadrilateral]:
        """The slide corners, or None while they are still unknown."""
        if not self._quadrilateral.is_initialised:
            return None
        return self._quadrilateral.get()

    def add_reference(self, name: str, pixels: FrameSource) -> None:
        """
        Register a reference slide (an RGB grid or a callable loading one).

        Raises:
            ValueError: If the name is taken or matching has already started.
        """
        if self._reference_vectors.is_initialised:
            raise ValueError(
                "Reference slides cannot be added after matching has started"
            )
        if name in self._references:
            raise ValueError(f"Duplicate reference slide name: {name}")
        self._references[name] = pixels

    def locate_slide(self, sample_frames: Iterable[FrameSource]) -> Quadrilateral:
        """
        Locate the projected slide, once.

        Tries up to ``locator.sample_frames`` of the given frames in order and
        keeps the first non-empty quadrilateral. Later calls return the stored
        result without looking at their arguments.

        Raises:
            ValueError: If no sampled frame contains an illuminated area.
        """
        return self._quadrilateral.get_or_init(lambda: self._locate(sample_frames))

    def _locate(self, sample_frames: Iterable[FrameSource]) -> Quadrilateral:
        locator = self.config.locator
        tried = 0
        for source in sample_frames:
            if tried >= locator.sample_frames:
                break
            tried += 1
            quad = locate_illuminated_area(
                _load(source),
                resize_if_largest_side_greater_than=locator.resize_if_largest_side_greater_than,
                resize_to=locator.resize_to,
                threshold_of_range=locator.threshold_of_range,
            )
            if not quad.is_empty:
                logger.info(f"Using slide corners {quad} from sampled frame {tried}")
                return quad
            logger.warning(f"Sampled frame {tried} has no illuminated area")

        raise ValueError(f"No illuminated area found in {tried} sampled frame(s)")

    def reference_vectors(self) -> ReferenceVectors:
        """
        Feature vectors of every reference slide, in name order.

        Computed once, in parallel, on first use; requires the slide corners
        to be known.

        Raises:
            ValueError: If no references are registered or the corners are unknown.
        """
        return self._reference_vectors.get_or_init(self._build_reference_vectors)

    def _build_reference_vectors(self) -> ReferenceVectors:
        if not self._references:
            raise ValueError("No reference slides registered")
        if not self._quadrilateral.is_initialised:
            raise ValueError("Slide corners must be located before vectorising references")

        projection_size = get_projection_size(self._quadrilateral.get())
        names = sorted(self._references)
        logger.info(
            f"Vectorising {len(names)} reference slides at "
            f"{projection_size[0]}x{projection_size[1]}"
        )

        def _vectorise(name: str) -> np.ndarray:
            fitted = fit_to_projection(_load(self._references[name]), projection_size)
            return self._vectorise(fitted)

        with ThreadPoolExecutor(max_workers=self.config.matching.max_workers) as executor:
            vectors = list(executor.map(_vectorise, names))

        return list(zip(names, vectors))

    def _vectorise(self, pixels: Grid) -> np.ndarray:
        features = self.config.features
        return get_vector(
            pixels,
            divide_dimensions_by=features.divide_dimensions_by,
            block_size_fraction_to_move=features.block_size_fraction_to_move,
        )

    def match_frame(self, frame_index: int, pixels: FrameSource) -> FrameMatch:
        """
        Find the reference slide closest to one frame.

        If the slide corners are not known yet they are located from this
        frame.

        Returns:
            FrameMatch with the nearest slide; ties go to the first name.
        """
        pixels = _load(pixels)
        quad = self.locate_slide([pixels])
        projection = extract_and_perspective_correct(pixels, quad)
        if self._projection_sink is not None:
            self._projection_sink(frame_index, projection)

        vector = self._vectorise(projection)
        best_name, best_distance = min(
            (
                (name, self._distance(vector, reference))
                for name, reference in self.reference_vectors()
            ),
            key=lambda entry: entry[1],
        )
        logger.debug(f"Frame {frame_index} -> {best_name} (distance {best_distance:.4f})")
        return FrameMatch(
            frame_index=frame_index, slide_name=best_name, distance=best_distance
        )

    def match_frames(self, frames: Sequence[Tuple[int, FrameSource]]) -> List[FrameMatch]:
        """
        Match many frames in parallel.

        Args:
            frames: (frame_index, grid or grid loader) pairs.

        Returns:
            One FrameMatch per frame, sorted by frame index.
        """
        frames = list(frames)
        if not frames:
            return []

        self.locate_slide(source for _, source in frames)
        self.reference_vectors()

        logger.info(
            f"Matching {len(frames)} frames with "
            f"{self.config.matching.max_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=self.config.matching.max_workers) as executor:
            futures = [
                executor.submit(self.match_frame, index, source)
                for index, source in frames
            ]
            matches = [future.result() for future in as_completed(futures)]

        matches.sort(key=lambda match: match.frame_index)
        logger.info(f"Matched {len(matches)} frames")
        return matches
