# docverify/utils/imaging.py
"""
Small numpy/OpenCV helpers shared by the template validator and the
forensic detectors.
"""
from typing import List

import cv2
import numpy as np

# 8-neighbour Laplacian used for edge maps and blur metrics
EDGE_KERNEL = np.array(
    [[-1, -1, -1],
     [-1, 8, -1],
     [-1, -1, -1]],
    dtype=np.float32,
)


def edge_map(gray: np.ndarray) -> np.ndarray:
    """Convolve with EDGE_KERNEL; negative responses saturate to 0, large ones to 255."""
    return cv2.filter2D(gray, cv2.CV_8U, EDGE_KERNEL, borderType=cv2.BORDER_REPLICATE)


def laplacian_variance(cell: np.ndarray) -> float:
    """Variance of the absolute Laplacian response over the cell interior."""
    if cell.shape[0] < 3 or cell.shape[1] < 3:
        return 0.0
    lap = cv2.filter2D(cell.astype(np.float32), cv2.CV_32F, EDGE_KERNEL)
    interior = np.abs(lap[1:-1, 1:-1])
    return float(interior.var())


def grid_cells(arr: np.ndarray, grid: int) -> List[np.ndarray]:
    """
    Split a 2-D array into grid x grid cells of floor(h/grid) x floor(w/grid).
    Remainder rows/columns on the right and bottom edges are ignored.
    Returns an empty list when the image is smaller than the grid.
    """
    h, w = arr.shape[:2]
    ch, cw = h // grid, w // grid
    if ch < 1 or cw < 1:
        return []
    return [
        arr[r * ch:(r + 1) * ch, c * cw:(c + 1) * cw]
        for r in range(grid)
        for c in range(grid)
    ]


def coefficient_of_variation(values: List[float]) -> float:
    """Population stdev / mean; 0 for empty input or a zero mean."""
    if not values:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    mean = float(arr.mean())
    if mean == 0:
        return 0.0
    return float(arr.std() / mean)
