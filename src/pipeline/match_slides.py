"""
Slide Matching Pipeline

Matches every extracted video frame in a directory to the reference slide it
shows and prints one line per frame, in frame order:

    Frame 300: slide_01
    Frame 320: slide_01
    Frame 340: slide_02
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from src.common.types import Quadrilateral
from src.grid import Grid
from src.matching import SlideMatcher, load_config
from src.utils.io import list_images, load_image, parse_frame_index, save_image
from src.utils.visualization import plot_quadrilateral

logger = logging.getLogger(__name__)


def parse_corners(value: str) -> Quadrilateral:
    """
    Parse "x1,y1,x2,y2,x3,y3,x4,y4" into a Quadrilateral (corners in any order).

    Raises:
        argparse.ArgumentTypeError: If the value is not 8 numbers forming a
            convex quadrilateral.
    """
    try:
        numbers = [float(part) for part in value.split(",")]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Corners must be numbers: {value}") from e
    if len(numbers) != 8:
        raise argparse.ArgumentTypeError(
            f"Expected 8 comma-separated numbers (4 x,y pairs), got {len(numbers)}"
        )
    pairs = [numbers[i : i + 2] for i in range(0, 8, 2)]
    try:
        return Quadrilateral.from_unordered(pairs)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def collect_frames(frames_dir: Path, pattern: str) -> List[Tuple[int, Path]]:
    """(frame_index, path) pairs for every frame file, sorted by index."""
    frames = []
    for path in list_images(frames_dir, pattern):
        index = parse_frame_index(path)
        if index is None:
            logger.warning(f"Skipping {path.name}: no frame number in file name")
            continue
        frames.append((index, path))
    return sorted(frames)


def _loader(path: Path):
    return lambda: Grid.from_pixel_source(load_image(path))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Match extracted video frames to the slides they show",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--frames", type=Path, required=True, help="Directory of extracted frames")
    parser.add_argument("--slides", type=Path, required=True, help="Directory of reference slide images")
    parser.add_argument("--frame-pattern", default="frame_*.png", help="Glob for frame files")
    parser.add_argument("--slide-pattern", default="*.png", help="Glob for slide files")
    parser.add_argument(
        "--corners",
        type=parse_corners,
        default=None,
        help="Slide corners x1,y1,...,x4,y4; located from the first frames if omitted",
    )
    parser.add_argument("--projections-dir", type=Path, default=None, help="Save rectified frames here")
    parser.add_argument("--debug-dir", type=Path, default=None, help="Save a corner overlay here")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file")
    parser.add_argument("--workers", type=int, default=None, help="Override matching.max_workers")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config) if args.config else load_config()
    if args.workers is not None:
        if args.workers < 1:
            raise ValueError("--workers must be at least 1")
        config.matching.max_workers = args.workers

    projection_sink = None
    if args.projections_dir is not None:
        projections_dir = args.projections_dir

        def projection_sink(index: int, projection: Grid) -> None:
            save_image(projection, projections_dir / f"projection_frame_{index}.png")

    matcher = SlideMatcher(
        config=config, quadrilateral=args.corners, projection_sink=projection_sink
    )

    slides = list_images(args.slides, args.slide_pattern)
    for path in slides:
        matcher.add_reference(path.stem, _loader(path))
    logger.info(f"Registered {len(slides)} reference slides from {args.slides}")

    frames = collect_frames(args.frames, args.frame_pattern)
    logger.info(f"Found {len(frames)} frames in {args.frames}")
    if not frames:
        return 0

    if args.debug_dir is not None:
        first_index, first_path = frames[0]
        first_frame = Grid.from_pixel_source(load_image(first_path))
        quad = matcher.locate_slide([first_frame] + [_loader(p) for _, p in frames[1:]])
        plot_quadrilateral(
            first_frame,
            quad,
            save_path=args.debug_dir / f"corners_frame_{first_index}.png",
            title=f"Frame {first_index}",
        )

    for match in matcher.match_frames([(index, _loader(path)) for index, path in frames]):
        print(match)

    return 0


if __name__ == "__main__":
    sys.exit(main())
