"""
MIT License

Copyright (c) 2025 Pan Yu

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.

Author: Pan Yu
"""

import math
import numpy as np
from typing import Tuple

from .projection_params import ProjectionConfigError, ProjectionParams, Rotation, as_size


class StereographicProjection:
  """
  Inverse stereographic ("little planet") projection model.
  
  Maps a pixel of the output canvas to the fractional source-image coordinate it
  shows. The canvas is treated as the tangent plane of a sphere of radius `radius`;
  each plane point is lifted onto the sphere, rotated, and then read back as
  longitude/latitude of an equirectangular source image.
  
  The model holds no state beyond its parameters and is safe to share between threads.
  """
  
  __slots__ = ('image_size', 'canvas_size', 'offset', 'rotation', 'scale', 'radius',
               '_shift_x', '_shift_y')
  
  def __init__(self, image_size: Tuple[int, int], canvas_size: Tuple[int, int],
               offset: Tuple[float, float], rotation: Rotation, scale: float):
    """
    Initialize the projection model.
    
    Parameters:
    - image_size: (width, height) of the source image in pixels
    - canvas_size: (width, height) of the output canvas in pixels
    - offset: (x, y) fractional shift of the canvas within the sampling window
    - rotation: Rotation applied to the sphere vectors
    - scale: multiplier on the sphere radius, must be > 0
    
    Raises:
    ProjectionConfigError for empty sizes, non-finite offset or a non-positive scale.
    """
    image_size = as_size(image_size, 'image size')
    canvas_size = as_size(canvas_size, 'canvas size')
    
    try:
      offset = tuple(float(v) for v in offset)
      scale = float(scale)
    except (TypeError, ValueError) as e:
      raise ProjectionConfigError(f"Invalid projection parameter: {e}")
    
    if len(offset) != 2 or not all(math.isfinite(v) for v in offset):
      raise ProjectionConfigError(f"Offset must be two finite numbers, got {offset}")
    if not isinstance(rotation, Rotation):
      raise ProjectionConfigError(f"Rotation must be a Rotation, got {type(rotation).__name__}")
    
    radius = min(canvas_size) / 10.0 * scale
    if not math.isfinite(radius) or radius <= 0:
      raise ProjectionConfigError(f"Scale {scale} gives a degenerate projection radius {radius}")
    
    object.__setattr__(self, 'image_size', (float(image_size[0]), float(image_size[1])))
    object.__setattr__(self, 'canvas_size', (float(canvas_size[0]), float(canvas_size[1])))
    object.__setattr__(self, 'offset', offset)
    object.__setattr__(self, 'rotation', rotation)
    object.__setattr__(self, 'scale', scale)
    object.__setattr__(self, 'radius', radius)
    
    # Recentering shift: offset (0.5, 0.5) leaves pixel coordinates unchanged
    object.__setattr__(self, '_shift_x', (offset[0] - 0.5) * self.canvas_size[0])
    object.__setattr__(self, '_shift_y', (offset[1] - 0.5) * self.canvas_size[1])
  
  def __setattr__(self, name, value):
    raise AttributeError(f"{type(self).__name__} is immutable")
  
  @classmethod
  def from_params(cls, params: ProjectionParams, image_size: Tuple[int, int]) -> 'StereographicProjection':
    """Build a model for a source image of `image_size` from a ProjectionParams value."""
    return cls(image_size, params.canvas_size, params.offset, params.rotation, params.scale)
  
  @property
  def canvas_width(self) -> int:
    return int(self.canvas_size[0])
  
  @property
  def canvas_height(self) -> int:
    return int(self.canvas_size[1])
  
  def project(self, p: Tuple[float, float]) -> Tuple[float, float]:
    """
    Project a single canvas pixel coordinate (x, y) to a fractional source coordinate (col, row).
    """
    map_x, map_y = self.project_points(np.array([p[0]], dtype=np.float64),
                                       np.array([p[1]], dtype=np.float64))
    return float(map_x[0]), float(map_y[0])
  
  def project_row(self, y: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Project every pixel of canvas row `y`.
    
    Returns:
    - map_x, map_y: float64 arrays of length canvas_width
    """
    xs = np.arange(self.canvas_width, dtype=np.float64)
    ys = np.full(self.canvas_width, y, dtype=np.float64)
    return self.project_points(xs, ys)
  
  def project_points(self, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized projection of canvas coordinates.
    
    Parameters:
    - xs, ys: broadcastable arrays of canvas pixel coordinates
    
    Returns:
    - map_x, map_y: fractional source-image coordinates; values outside the image
      are valid and left for the sampler to clamp
    """
    px = np.asarray(xs, dtype=np.float64) + self._shift_x
    py = np.asarray(ys, dtype=np.float64) + self._shift_y
    
    vx, vy, vz = self._image_to_sphere(px, py)
    vx, vy, vz = self._rotate(vx, vy, vz)
    return self._sphere_to_image(vx, vy, vz)
  
  def _image_to_sphere(self, px: np.ndarray, py: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    # Inverse stereographic projection; the plane origin lands on the +z pole
    r2 = self.radius * self.radius
    k = 2.0 * r2 / (px * px + py * py + r2)
    
    vx = k * px
    vy = k * py
    vz = (k - 1.0) * self.radius
    
    norm = np.sqrt(vx * vx + vy * vy + vz * vz)
    return vx / norm, vy / norm, vz / norm
  
  def _rotate(self, vx: np.ndarray, vy: np.ndarray, vz: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    m = self.rotation.matrix
    rx = m[0, 0] * vx + m[0, 1] * vy + m[0, 2] * vz
    ry = m[1, 0] * vx + m[1, 1] * vy + m[1, 2] * vz
    rz = m[2, 0] * vx + m[2, 1] * vy + m[2, 2] * vz
    return rx, ry, rz
  
  def _sphere_to_image(self, vx: np.ndarray, vy: np.ndarray, vz: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # One Newton step toward unit length to absorb drift from the rotation
    factor = 1.5 - 0.5 * (vx * vx + vy * vy + vz * vz)
    vx = vx * factor
    vy = vy * factor
    vz = vz * factor
    
    row = np.arccos(np.clip(vz, -1.0, 1.0)) / np.pi
    col = np.arctan2(vx, vy) / (2.0 * np.pi) + 0.5
    return col * self.image_size[0], row * self.image_size[1]
  
  def __repr__(self):
    return (f"StereographicProjection(image={int(self.image_size[0])}x{int(self.image_size[1])}, "
            f"canvas={self.canvas_width}x{self.canvas_height}, offset={self.offset}, "
            f"radius={self.radius:.3f})")
