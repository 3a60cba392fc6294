"""
I/O Utilities

Image decode/encode and file enumeration for the slide matching pipeline.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np
import yaml

from src.common.types import ImageBuffer
from src.grid import Grid

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")


def load_yaml(file_path: Path) -> Dict[str, Any]:
    """Load YAML file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_image(file_path: Path) -> ImageBuffer:
    """
    Decode an image file into an RGB ImageBuffer.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If OpenCV cannot decode the file.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")

    bgr = cv2.imread(str(file_path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise ValueError(f"Could not decode image: {file_path}")

    return ImageBuffer(data=cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))


def save_image(image: Union[Grid, ImageBuffer, np.ndarray], file_path: Path) -> None:
    """
    Encode an RGB grid, buffer or array to ``file_path`` (format from suffix).

    Raises:
        ValueError: If OpenCV fails to encode the image.
    """
    if isinstance(image, Grid):
        rgb = image.to_array()
    elif isinstance(image, ImageBuffer):
        rgb = image.to_rgb()
    else:
        rgb = image

    rgb = np.ascontiguousarray(np.clip(rgb, 0, 255), dtype=np.uint8)
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(file_path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)):
        raise ValueError(f"Could not encode image: {file_path}")
    logger.debug(f"Saved {rgb.shape[1]}x{rgb.shape[0]} image to {file_path}")


def list_images(directory: Path, pattern: str = "*.png") -> List[Path]:
    """
    Files in ``directory`` matching ``pattern``, sorted by name.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")
    return sorted(p for p in directory.glob(pattern) if p.is_file())


def parse_frame_index(file_path: Path) -> Optional[int]:
    """
    Frame number from a file name: the first run of digits in its stem.

    Example:
        >>> parse_frame_index(Path("frame_300.png"))
        300
    """
    match = _DIGITS.search(Path(file_path).stem)
    if match is None:
        return None
    return int(match.group())
