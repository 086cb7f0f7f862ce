"""
Perceptual pixel comparison

Pixels are compared in YIQ colour space, the same measure pixelmatch uses:
semi-transparent pixels are blended over white first, and a pixel counts as
different when its weighted YIQ distance exceeds 35215 * threshold ** 2
(35215 being the largest possible distance).

Like pixelmatch, pixels that look like anti-aliasing in either image are not
counted unless include_aa is set.
"""
import numpy as np

MAX_YIQ_DELTA = 35215.0

# Rows: Y, I, Q
_RGB_TO_YIQ = np.array([
    [0.29889531, 0.58662247, 0.11448223],
    [0.59597799, -0.27417610, -0.32180189],
    [0.21147017, -0.52261711, 0.31114694],
])
_YIQ_WEIGHTS = np.array([0.5053, 0.299, 0.1957])

# The 8 neighbours as (dx, dy), column by column
_NEIGHBOURS = np.array([
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if dx or dy
])


def _blend_over_white(image: np.ndarray) -> np.ndarray:
    """Return RGB as float with alpha composited over a white background"""
    rgba = image.astype(np.float64)
    alpha = rgba[..., 3:4] / 255.0
    return 255.0 + (rgba[..., :3] - 255.0) * alpha


def _brightness(image: np.ndarray) -> np.ndarray:
    rgb = _blend_over_white(image)
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _edge_mask(height: int, width: int) -> np.ndarray:
    edge = np.zeros((height, width), dtype=np.int16)
    edge[0, :] = edge[-1, :] = 1
    edge[:, 0] = edge[:, -1] = 1
    return edge


def _neighbour_views(padded: np.ndarray, height: int, width: int):
    """Yield views of a 1-pixel padded array shifted onto each neighbour"""
    for dx, dy in _NEIGHBOURS:
        yield padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]


def _has_many_siblings(image: np.ndarray) -> np.ndarray:
    """Pixels with more than 2 identical neighbours (image edges count as one)"""
    height, width = image.shape[:2]
    padded = np.pad(
        image.astype(np.int16), ((1, 1), (1, 1), (0, 0)), constant_values=-1
    )
    equal = _edge_mask(height, width)
    for neighbour in _neighbour_views(padded, height, width):
        equal += np.all(neighbour == image, axis=-1)
    return equal > 2


def _antialiased(image: np.ndarray, siblings: np.ndarray) -> np.ndarray:
    """
    Mask of pixels of image that look anti-aliased

    A pixel qualifies when it has at most 2 equal neighbours, both darker and
    brighter neighbours, and its darkest or brightest neighbour sits in a flat
    area (siblings: many equal neighbours in both compared images).
    """
    height, width = image.shape[:2]
    luma = _brightness(image)
    padded = np.pad(luma, 1, constant_values=np.nan)
    deltas = np.stack([luma - n for n in _neighbour_views(padded, height, width)])

    equal = _edge_mask(height, width) + np.count_nonzero(deltas == 0, axis=0)
    darker = deltas < 0
    brighter = deltas > 0

    # First extreme in neighbour order wins ties
    min_index = np.where(darker, deltas, np.inf).argmin(axis=0)
    max_index = np.where(brighter, deltas, -np.inf).argmax(axis=0)

    ys, xs = np.indices((height, width))
    min_x = np.clip(xs + _NEIGHBOURS[min_index, 0], 0, width - 1)
    min_y = np.clip(ys + _NEIGHBOURS[min_index, 1], 0, height - 1)
    max_x = np.clip(xs + _NEIGHBOURS[max_index, 0], 0, width - 1)
    max_y = np.clip(ys + _NEIGHBOURS[max_index, 1], 0, height - 1)

    return (
        (equal <= 2)
        & darker.any(axis=0)
        & brighter.any(axis=0)
        & (siblings[min_y, min_x] | siblings[max_y, max_x])
    )


def color_delta(image1: np.ndarray, image2: np.ndarray) -> np.ndarray:
    """
    Per-pixel YIQ distance between two RGBA images

    Args:
        image1: (h, w, 4) uint8 array
        image2: array of the same shape

    Returns:
        (h, w) float array, 0 for identical pixels
    """
    diff = _blend_over_white(image1) - _blend_over_white(image2)
    yiq = diff @ _RGB_TO_YIQ.T
    return (yiq * yiq) @ _YIQ_WEIGHTS


def diff_mask(
    image1: np.ndarray,
    image2: np.ndarray,
    threshold: float = 0.1,
    include_aa: bool = False
) -> np.ndarray:
    """Boolean mask of pixels that differ beyond the matching threshold"""
    if image1.shape != image2.shape:
        raise ValueError(
            f"Image sizes do not match: {image1.shape} vs {image2.shape}"
        )
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")

    max_delta = MAX_YIQ_DELTA * threshold * threshold
    mask = color_delta(image1, image2) > max_delta
    if include_aa or not mask.any():
        return mask

    siblings = _has_many_siblings(image1) & _has_many_siblings(image2)
    aa = _antialiased(image1, siblings) | _antialiased(image2, siblings)
    return mask & ~aa


def count_differing_pixels(
    image1: np.ndarray,
    image2: np.ndarray,
    threshold: float = 0.1,
    include_aa: bool = False
) -> int:
    """
    Count pixels classified as different

    Args:
        image1: (h, w, 4) uint8 RGBA array
        image2: array of the same shape
        threshold: Matching threshold, 0-1; smaller is stricter
        include_aa: Count anti-aliased pixels as differences too
    """
    return int(np.count_nonzero(diff_mask(image1, image2, threshold, include_aa)))
