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
import yaml
from typing import Dict, Optional, Sequence, Tuple


DEFAULT_CANVAS_SIZE = (600, 600)
DEFAULT_OFFSET = (0.0, 0.4)
DEFAULT_ROTATION = (0.0, 0.09, 0.0)
DEFAULT_SCALE = 1.5


class ProjectionConfigError(ValueError):
  """Raised when projection parameters, image or canvas sizes are unusable."""


class Rotation:
  """
  Immutable 3-D rotation built from Euler angles.
  
  The primitive rotations are applied in order roll (about X), pitch (about Y),
  then yaw (about Z), so the matrix is R = Rz(yaw) @ Ry(pitch) @ Rx(roll).
  """
  
  __slots__ = ('_matrix',)
  
  def __init__(self, matrix):
    matrix = np.array(matrix, dtype=np.float64)
    if matrix.shape != (3, 3):
      raise ProjectionConfigError(f"Rotation matrix must be 3x3, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
      raise ProjectionConfigError("Rotation matrix contains non-finite values")
    matrix.setflags(write=False)
    object.__setattr__(self, '_matrix', matrix)
  
  def __setattr__(self, name, value):
    raise AttributeError(f"{type(self).__name__} is immutable")
  
  @classmethod
  def identity(cls) -> 'Rotation':
    return cls(np.eye(3))
  
  @classmethod
  def from_euler_angles(cls, roll: float, pitch: float, yaw: float) -> 'Rotation':
    """
    Create a rotation from Euler angles in radians.
    
    Parameters:
    - roll: rotation around the X axis, applied first
    - pitch: rotation around the Y axis, applied second
    - yaw: rotation around the Z axis, applied last
    """
    for name, angle in (('roll', roll), ('pitch', pitch), ('yaw', yaw)):
      if not math.isfinite(angle):
        raise ProjectionConfigError(f"Rotation angle {name} must be finite, got {angle}")
    
    sr, cr = math.sin(roll), math.cos(roll)
    sp, cp = math.sin(pitch), math.cos(pitch)
    sy, cy = math.sin(yaw), math.cos(yaw)
    
    R_roll = np.array([
      [1, 0, 0],
      [0, cr, -sr],
      [0, sr, cr]
    ])
    
    R_pitch = np.array([
      [cp, 0, sp],
      [0, 1, 0],
      [-sp, 0, cp]
    ])
    
    R_yaw = np.array([
      [cy, -sy, 0],
      [sy, cy, 0],
      [0, 0, 1]
    ])
    
    return cls(R_yaw @ R_pitch @ R_roll)
  
  @property
  def matrix(self) -> np.ndarray:
    return self._matrix
  
  def inverse(self) -> 'Rotation':
    # Orthonormal, so the transpose is the inverse
    return Rotation(self._matrix.T)
  
  def apply(self, vectors: np.ndarray) -> np.ndarray:
    """
    Rotate one vector of shape (3,) or a stack of vectors of shape (..., 3).
    """
    return np.asarray(vectors, dtype=np.float64) @ self._matrix.T
  
  def __matmul__(self, other: 'Rotation') -> 'Rotation':
    if not isinstance(other, Rotation):
      return NotImplemented
    return Rotation(self._matrix @ other._matrix)
  
  def __eq__(self, other):
    if not isinstance(other, Rotation):
      return NotImplemented
    return np.array_equal(self._matrix, other._matrix)
  
  def __hash__(self):
    return hash(self._matrix.tobytes())
  
  def __repr__(self):
    return f"Rotation({self._matrix.tolist()})"


class ProjectionParams:
  """
  Parameter set for one little planet rendering pass.
  
  This is a value object: it is created fresh from the current user input before
  each render and cannot be modified afterwards. Offset, rotation angles and scale
  keep the ranges exposed by the interactive tool (offset in [-1, 1], angles in
  [0, pi], scale in [0.1, 5.0]) but values outside those ranges are accepted.
  """
  
  __slots__ = ('offset', 'rotation_angles', 'scale', 'canvas_width', 'canvas_height')
  
  def __init__(self, offset: Sequence[float] = DEFAULT_OFFSET,
               rotation: Sequence[float] = DEFAULT_ROTATION,
               scale: float = DEFAULT_SCALE,
               canvas_width: int = DEFAULT_CANVAS_SIZE[0],
               canvas_height: int = DEFAULT_CANVAS_SIZE[1]):
    """
    Initialize projection parameters.
    
    Parameters:
    - offset: (x, y) fractional shift of the canvas centre; (0.5, 0.5) leaves the canvas unshifted
    - rotation: (roll, pitch, yaw) Euler angles in radians
    - scale: multiplier on the projection sphere radius (must be > 0)
    - canvas_width, canvas_height: output canvas size in pixels
    """
    try:
      offset = tuple(float(v) for v in offset)
      rotation = tuple(float(v) for v in rotation)
      scale = float(scale)
    except (TypeError, ValueError) as e:
      raise ProjectionConfigError(f"Invalid projection parameter: {e}")
    
    if len(offset) != 2:
      raise ProjectionConfigError(f"Offset must have 2 components, got {len(offset)}")
    if len(rotation) != 3:
      raise ProjectionConfigError(f"Rotation must have 3 angles, got {len(rotation)}")
    
    object.__setattr__(self, 'offset', offset)
    object.__setattr__(self, 'rotation_angles', rotation)
    object.__setattr__(self, 'scale', scale)
    object.__setattr__(self, 'canvas_width', _as_dimension(canvas_width, 'canvas width'))
    object.__setattr__(self, 'canvas_height', _as_dimension(canvas_height, 'canvas height'))
    
    self.validate()
  
  def __setattr__(self, name, value):
    raise AttributeError(f"{type(self).__name__} is immutable; create a new instance instead")
  
  @property
  def canvas_size(self) -> Tuple[int, int]:
    return (self.canvas_width, self.canvas_height)
  
  @property
  def rotation(self) -> Rotation:
    return Rotation.from_euler_angles(*self.rotation_angles)
  
  def replace(self, **changes) -> 'ProjectionParams':
    """Return a copy with some fields changed."""
    values = {
      'offset': self.offset,
      'rotation': self.rotation_angles,
      'scale': self.scale,
      'canvas_width': self.canvas_width,
      'canvas_height': self.canvas_height
    }
    values.update(changes)
    return ProjectionParams(**values)
  
  def validate(self):
    """
    Validate parameters.
    
    Raises:
    ProjectionConfigError if the canvas is empty or a value is non-finite, or scale <= 0.
    """
    if self.canvas_width < 1 or self.canvas_height < 1:
      raise ProjectionConfigError(f"Invalid canvas dimensions: {self.canvas_width}x{self.canvas_height}")
    
    if not all(math.isfinite(v) for v in self.offset):
      raise ProjectionConfigError(f"Offset must be finite: {self.offset}")
    
    if not all(math.isfinite(v) for v in self.rotation_angles):
      raise ProjectionConfigError(f"Rotation angles must be finite: {self.rotation_angles}")
    
    # A non-positive scale collapses the projection sphere to a point or turns it inside out
    if not math.isfinite(self.scale) or self.scale <= 0:
      raise ProjectionConfigError(f"Scale must be a positive finite number, got {self.scale}")
  
  def to_dict(self) -> Dict:
    """
    Convert parameters to the dictionary layout used by the YAML files.
    """
    return {
      'canvas': {
        'width': self.canvas_width,
        'height': self.canvas_height
      },
      'offset': list(self.offset),
      'rotation': list(self.rotation_angles),
      'scale': self.scale
    }
  
  def __eq__(self, other):
    if not isinstance(other, ProjectionParams):
      return NotImplemented
    return self.to_dict() == other.to_dict()
  
  def __hash__(self):
    return hash((self.offset, self.rotation_angles, self.scale, self.canvas_width, self.canvas_height))
  
  def __str__(self):
    return (f"ProjectionParams(canvas={self.canvas_width}x{self.canvas_height}, "
            f"offset=({self.offset[0]:.3f}, {self.offset[1]:.3f}), "
            f"rotation=({self.rotation_angles[0]:.3f}, {self.rotation_angles[1]:.3f}, {self.rotation_angles[2]:.3f}), "
            f"scale={self.scale:.3f})")
  
  def __repr__(self):
    return self.__str__()


def _as_dimension(value, name: str) -> int:
  if isinstance(value, bool):
    raise ProjectionConfigError(f"Invalid {name}: {value!r}")
  try:
    as_int = int(value)
  except (TypeError, ValueError):
    raise ProjectionConfigError(f"Invalid {name}: {value!r}")
  if as_int != value:
    raise ProjectionConfigError(f"Invalid {name}: {value!r} is not a whole number")
  return as_int


def params_from_dict(data: Dict, defaults: Optional[ProjectionParams] = None) -> ProjectionParams:
  """
  Build ProjectionParams from the YAML dictionary layout.
  
  Keys that are absent fall back to `defaults` (or the module defaults).
  
  Raises:
  ProjectionConfigError if the layout is malformed.
  """
  if defaults is None:
    defaults = ProjectionParams()
  if data is None:
    data = {}
  if not isinstance(data, dict):
    raise ProjectionConfigError(f"Projection parameters must be a mapping, got {type(data).__name__}")
  
  canvas = data.get('canvas', {})
  if not isinstance(canvas, dict):
    raise ProjectionConfigError("'canvas' must be a mapping with 'width' and 'height'")
  
  return ProjectionParams(
    offset=data.get('offset', defaults.offset),
    rotation=data.get('rotation', defaults.rotation_angles),
    scale=data.get('scale', defaults.scale),
    canvas_width=canvas.get('width', defaults.canvas_width),
    canvas_height=canvas.get('height', defaults.canvas_height)
  )


def parse_projection_params(filename) -> ProjectionParams:
  """
  Parse projection parameters from a YAML file.
  
  Expected layout:
  
    canvas: {width: 600, height: 600}
    offset: [0.0, 0.4]
    rotation: [0.0, 0.09, 0.0]
    scale: 1.5
  
  Parameters:
  - filename: path to YAML projection parameters file
  
  Returns:
  ProjectionParams object with loaded parameters.
  
  Raises:
  ProjectionConfigError if file format is invalid or parameters are unusable.
  FileNotFoundError if the file doesn't exist.
  """
  try:
    with open(filename, 'r') as f:
      data = yaml.safe_load(f)
  except FileNotFoundError:
    raise FileNotFoundError(f"Projection parameters file not found: {filename}")
  except yaml.YAMLError as e:
    raise ProjectionConfigError(f"Invalid YAML format in file '{filename}': {e}")
  
  return params_from_dict(data)


def parse_projection_params_dict(filename) -> Dict:
  """
  Parse projection parameters from file and return dictionary format.
  """
  return parse_projection_params(filename).to_dict()


def as_size(size, name: str) -> Tuple[int, int]:
  """
  Validate a (width, height) pair.
  
  Raises:
  ProjectionConfigError if either dimension is not a whole number >= 1.
  """
  try:
    width, height = size
  except (TypeError, ValueError):
    raise ProjectionConfigError(f"Invalid {name}: expected (width, height), got {size!r}")
  
  width = _as_dimension(width, f"{name} width")
  height = _as_dimension(height, f"{name} height")
  if width < 1 or height < 1:
    raise ProjectionConfigError(f"Invalid {name} dimensions: {width}x{height}")
  return (width, height)
