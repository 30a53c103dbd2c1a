import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from littleplanet.projection_params import ProjectionParams


@pytest.fixture
def gradient_image():
  """8x6 RGB image whose pixel (x, y) is (10*x, 20*y, 100 + x + y)."""
  width, height = 8, 6
  img = np.empty((height, width, 3), dtype=np.uint8)
  for y in range(height):
    for x in range(width):
      img[y, x] = (10 * x, 20 * y, 100 + x + y)
  return img


@pytest.fixture
def panorama():
  """Larger synthetic equirectangular image with smooth ramps."""
  width, height = 256, 128
  cols = np.linspace(0, 255, width)
  rows = np.linspace(0, 255, height)
  img = np.empty((height, width, 3), dtype=np.uint8)
  img[:, :, 0] = cols[np.newaxis, :]
  img[:, :, 1] = rows[:, np.newaxis]
  img[:, :, 2] = (cols[np.newaxis, :] + rows[:, np.newaxis]) / 2
  return img


@pytest.fixture
def default_params():
  return ProjectionParams(offset=(0.0, 0.4), rotation=(0.0, 0.09, 0.0), scale=1.5,
                          canvas_width=160, canvas_height=140)
