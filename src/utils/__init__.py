"""
Shared Utilities

Image I/O, file enumeration, debug plots and synchronisation helpers used
around the core pipeline.
"""

from src.utils.io import list_images, load_image, load_yaml, parse_frame_index, save_image
from src.utils.once import OnceCell

__all__ = [
    "OnceCell",
    "list_images",
    "load_image",
    "load_yaml",
    "parse_frame_index",
    "save_image",
]
