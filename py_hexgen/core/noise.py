"""Coherent 2D noise fields sampled at hex tile centres."""

import numpy as np
from opensimplex import OpenSimplex

from .hex_grid import offset_to_pixel


def normalize(values: np.ndarray) -> np.ndarray:
    """Min-max normalise an array to [0, 1]; a flat array maps to 0.5."""
    low = float(values.min()) if values.size else 0.0
    high = float(values.max()) if values.size else 0.0
    if high - low < 1e-12:
        return np.full_like(values, 0.5, dtype=np.float64)
    return (values - low) / (high - low)


def sample_noise_field(
    width: int,
    height: int,
    seed: int,
    scale: float,
    octaves: int = 1,
    persistence: float = 0.5,
) -> np.ndarray:
    """
    Sample fractal OpenSimplex noise at every tile centre.

    Args:
        width: Map width in tiles
        height: Map height in tiles
        seed: Noise generator seed
        scale: Base frequency applied to pixel coordinates
        octaves: Number of octaves summed, each at double frequency
        persistence: Amplitude multiplier between octaves

    Returns:
        Array of shape (height, width), normalised to [0, 1]
    """
    generator = OpenSimplex(seed=seed)
    values = np.zeros((height, width), dtype=np.float64)

    for y in range(height):
        for x in range(width):
            px, py = offset_to_pixel(x, y)
            total = 0.0
            amplitude = 1.0
            frequency = scale
            for _ in range(octaves):
                total += generator.noise2(px * frequency, py * frequency) * amplitude
                amplitude *= persistence
                frequency *= 2
            values[y, x] = total

    return normalize(values)
