"""
Visualization Utilities

Debug overlays for located slides.
"""

from pathlib import Path
from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np

from src.common.types import Quadrilateral
from src.grid import Grid

CORNER_LABELS = ("TL", "TR", "BR", "BL")


def plot_quadrilateral(
    image: Union[Grid, np.ndarray],
    quad: Quadrilateral,
    save_path: Optional[Path] = None,
    title: Optional[str] = None,
):
    """
    Plot an RGB image with a quadrilateral outline and labelled corners.

    Args:
        image: RGB grid or (H, W, 3) array.
        quad: Corners to draw, in TL, TR, BR, BL order.
        save_path: Optional path to save figure.
        title: Optional figure title.

    Returns:
        The matplotlib figure when ``save_path`` is not given; otherwise the
        figure is saved and closed and None is returned.
    """
    pixels = image.to_array() if isinstance(image, Grid) else image

    fig, ax = plt.subplots(1, 1, figsize=(12, 8))
    ax.imshow(pixels)

    corners = quad.to_numpy()
    outline = np.vstack([corners, corners[:1]])
    ax.plot(outline[:, 0], outline[:, 1], "g-", linewidth=2)

    for label, (x, y) in zip(CORNER_LABELS, corners):
        ax.plot(x, y, "ro", markersize=8)
        ax.text(x + 5, y + 5, label, color="red", fontsize=12, weight="bold")

    if title:
        ax.set_title(title)
    ax.axis("off")

    if save_path is None:
        return fig

    Path(save_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    return None
