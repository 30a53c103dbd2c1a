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

import numpy as np
import time
from typing import Optional, Tuple
from concurrent.futures import ThreadPoolExecutor
import multiprocessing
from .projection_params import ProjectionConfigError, ProjectionParams, as_size
from .stereographic_projection import StereographicProjection


def prepare_source_image(img: np.ndarray) -> np.ndarray:
  """
  Check a decoded source image and bring it to (H, W, 3).
  
  Greyscale images are broadcast to three channels and an alpha channel is dropped.
  The caller's array is never modified.
  
  Raises:
  ProjectionConfigError if the image is missing, empty or has an unsupported shape.
  """
  if img is None:
    raise ProjectionConfigError("Input image is None")
  
  img = np.asarray(img)
  if img.ndim == 2:
    img = img[:, :, np.newaxis]
  if img.ndim != 3:
    raise ProjectionConfigError(f"Source image must be a 2-D raster, got array of shape {img.shape}")
  
  height, width, channels = img.shape
  if width < 1 or height < 1:
    raise ProjectionConfigError(f"Invalid source image dimensions: {width}x{height}")
  
  if channels == 1:
    img = np.repeat(img, 3, axis=2)
  elif channels == 4:
    img = img[:, :, :3]
  elif channels != 3:
    raise ProjectionConfigError(f"Source image must have 1, 3 or 4 channels, got {channels}")
  
  if not (np.issubdtype(img.dtype, np.integer) or np.issubdtype(img.dtype, np.floating)):
    raise ProjectionConfigError(f"Unsupported source image dtype: {img.dtype}")
  
  return img


def _interpolate(q1: np.ndarray, q2: np.ndarray, w1: np.ndarray, w2: np.ndarray, truncate: bool) -> np.ndarray:
  """
  Weighted average (q1*w1 + q2*w2) / (w1 + w2) of two colour stacks.
  
  Evaluated as q1 + (q2 - q1) * w2 / (w1 + w2), which is exact when q1 == q2 or w2 == 0.
  A zero total weight (both neighbours are the same edge pixel) returns q1.
  """
  total = w1 + w2
  degenerate = total == 0
  t = np.where(degenerate, 0.0, w2 / np.where(degenerate, 1.0, total))
  q = q1 + (q2 - q1) * t[..., np.newaxis]
  if truncate:
    q = np.trunc(q)
  return q


def sample_bilinear_points(img: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
  """
  Sample an (H, W, C) image at fractional coordinates with bilinear interpolation.
  
  Parameters:
  - img: source image, already passed through prepare_source_image
  - xs, ys: broadcastable arrays of fractional column/row coordinates
  
  Returns:
  - colours with shape xs.shape + (C,) and the image's dtype; integer images are
    truncated after each interpolation pass
  """
  height, width = img.shape[:2]
  truncate = np.issubdtype(img.dtype, np.integer)
  
  xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64))
  
  # Out-of-range coordinates sample the edge pixel
  xs = np.clip(np.nan_to_num(xs, nan=0.0), 0.0, width - 1)
  ys = np.clip(np.nan_to_num(ys, nan=0.0), 0.0, height - 1)
  
  x1 = np.floor(xs).astype(np.intp)
  y1 = np.floor(ys).astype(np.intp)
  x2 = np.minimum(x1 + 1, width - 1)
  y2 = np.minimum(y1 + 1, height - 1)
  
  q11 = img[y1, x1].astype(np.float64)
  q21 = img[y1, x2].astype(np.float64)
  q12 = img[y2, x1].astype(np.float64)
  q22 = img[y2, x2].astype(np.float64)
  
  wx1 = x2 - xs
  wx2 = xs - x1
  r1 = _interpolate(q11, q21, wx1, wx2, truncate)
  r2 = _interpolate(q12, q22, wx1, wx2, truncate)
  q = _interpolate(r1, r2, y2 - ys, ys - y1, truncate)
  
  return q.astype(img.dtype)


def sample_bilinear(img: np.ndarray, x: float, y: float) -> np.ndarray:
  """Sample a single colour at fractional coordinate (x, y)."""
  return sample_bilinear_points(img, np.array([x]), np.array([y]))[0]


def apply_projection_maps(img: np.ndarray, map_x: np.ndarray, map_y: np.ndarray) -> np.ndarray:
  """
  Apply little planet projection maps to a source image.
  
  Parameters:
  - img: source image as numpy array
  - map_x: array of x coordinates in the source image for each output pixel
  - map_y: array of y coordinates in the source image for each output pixel
  
  Returns:
  - canvas: the resampled image with map_x.shape + (3,)
  """
  img = prepare_source_image(img)
  
  output_height, output_width = map_x.shape
  print(f"Applying projection maps with bilinear sampling to create {output_width}x{output_height} image")
  
  start_time = time.time()
  result = sample_bilinear_points(img, map_x, map_y)
  remap_time = time.time() - start_time
  print(f"\033[33mBilinear remap processing time: {remap_time:.4f} seconds\033[0m")
  
  return result


def generate_projection_maps(model: StereographicProjection) -> Tuple[np.ndarray, np.ndarray]:
  """
  Compute the source coordinate of every canvas pixel.
  
  Returns:
  - map_x, map_y: float64 arrays of shape (canvas_height, canvas_width)
  """
  map_x = np.empty((model.canvas_height, model.canvas_width), dtype=np.float64)
  map_y = np.empty((model.canvas_height, model.canvas_width), dtype=np.float64)
  for y in range(model.canvas_height):
    map_x[y], map_y[y] = model.project_row(y)
  return map_x, map_y


class Rasterizer:
  """
  Resampling rasterizer for the little planet projection.
  
  Drives a StereographicProjection across every pixel of the output canvas and fills
  each pixel with a bilinear sample of the source image. Rows are independent, so the
  canvas is split into row chunks processed on a thread pool; every chunk writes only
  its own rows.
  """
  
  def __init__(self, use_vectorized: bool = True, max_workers: Optional[int] = None,
               min_chunk_rows: int = 32):
    """
    Initialize the rasterizer.
    
    Parameters:
    - use_vectorized: if True, use the row-vectorized parallel renderer; if False, use
      the per-pixel reference implementation
    - max_workers: thread count; defaults to the CPU count capped at 8
    - min_chunk_rows: minimum rows per chunk
    """
    if max_workers is not None and max_workers < 1:
      raise ProjectionConfigError(f"max_workers must be >= 1, got {max_workers}")
    if min_chunk_rows < 1:
      raise ProjectionConfigError(f"min_chunk_rows must be >= 1, got {min_chunk_rows}")
    
    self.use_vectorized = use_vectorized
    self.max_workers = max_workers
    self.min_chunk_rows = min_chunk_rows
  
  def render(self, source_image: np.ndarray, params: ProjectionParams) -> np.ndarray:
    """
    Render a little planet canvas.
    
    Parameters:
    - source_image: decoded (H, W, 3) raster; never modified
    - params: ProjectionParams for this pass
    
    Returns:
    - canvas: (canvas_height, canvas_width, 3) array
    """
    img = prepare_source_image(source_image)
    height, width = img.shape[:2]
    model = StereographicProjection.from_params(params, (width, height))
    return self.render_with_model(img, model)
  
  def render_with_model(self, source_image: np.ndarray, model: StereographicProjection) -> np.ndarray:
    img = prepare_source_image(source_image)

    # Validate input image size against the projection model
    img_height, img_width = img.shape[:2]
    expected_width, expected_height = int(model.image_size[0]), int(model.image_size[1])
    if img_width != expected_width or img_height != expected_height:
      raise ProjectionConfigError(f"Input image size {img_width}x{img_height} does not match "
                                  f"projection model {expected_width}x{expected_height}")

    if self.use_vectorized:
      print("Using vectorized (fast) rendering")
      return self._render_vectorized(img, model)
    else:
      print("Using reference (slow but educational) rendering")
      return self._render_reference(img, model)
  
  def _render_reference(self, img: np.ndarray, model: StereographicProjection) -> np.ndarray:
    """
    Reference implementation: one projection and one bilinear sample per pixel.
    """
    start_time = time.time()
    
    canvas = np.zeros((model.canvas_height, model.canvas_width, 3), dtype=img.dtype)
    
    print(f"Rendering little planet: {model.canvas_width}x{model.canvas_height}")
    
    for y in range(model.canvas_height):
      for x in range(model.canvas_width):
        col, row = model.project((x, y))
        canvas[y, x] = sample_bilinear(img, col, row)
    
    render_time = time.time() - start_time
    print(f"\033[33mReference render processing time: {render_time:.4f} seconds\033[0m")
    
    return canvas
  
  def _process_row_chunk(self, img: np.ndarray, model: StereographicProjection,
                         canvas: np.ndarray, row_start: int, row_end: int) -> None:
    # Row by row so every row sees identical float operations whatever the chunking
    for y in range(row_start, row_end):
      map_x, map_y = model.project_row(y)
      canvas[y] = sample_bilinear_points(img, map_x, map_y)
  
  def _render_vectorized(self, img: np.ndarray, model: StereographicProjection) -> np.ndarray:
    """
    Parallel vectorized implementation: row chunks on a ThreadPoolExecutor.
    """
    start_time = time.time()
    
    output_width, output_height = model.canvas_width, model.canvas_height
    
    num_cores = self.max_workers or min(multiprocessing.cpu_count(), 8)
    chunk_size = max(self.min_chunk_rows, output_height // (num_cores * 2))
    
    print(f"Rendering little planet: {output_width}x{output_height}")
    print(f"Offset: ({model.offset[0]:.3f}, {model.offset[1]:.3f}), radius: {model.radius:.2f}")
    
    canvas = np.zeros((output_height, output_width, 3), dtype=img.dtype)
    
    if output_height < 128 or output_width < 128 or num_cores == 1:
      print("Using single-threaded processing for small image")
      self._process_row_chunk(img, model, canvas, 0, output_height)
    else:
      print(f"Using {num_cores} threads with chunk size {chunk_size} rows")
      with ThreadPoolExecutor(max_workers=num_cores) as executor:
        futures = []
        for row_start in range(0, output_height, chunk_size):
          row_end = min(row_start + chunk_size, output_height)
          futures.append(executor.submit(self._process_row_chunk, img, model, canvas, row_start, row_end))
        
        for future in futures:
          future.result()
    
    render_time = time.time() - start_time
    print(f"\033[33mParallel vectorized render processing time: {render_time:.4f} seconds\033[0m")
    
    return canvas


def render(source_image: np.ndarray, model: StereographicProjection,
           canvas_size: Tuple[int, int], max_workers: Optional[int] = None) -> np.ndarray:
  """
  Render `source_image` through `model` onto a canvas of `canvas_size`.
  
  Raises:
  ProjectionConfigError if canvas_size does not match the model's canvas.
  """
  canvas_size = as_size(canvas_size, 'canvas size')
  if canvas_size != (model.canvas_width, model.canvas_height):
    raise ProjectionConfigError(f"Canvas size {canvas_size[0]}x{canvas_size[1]} does not match "
                                f"projection canvas {model.canvas_width}x{model.canvas_height}")
  return Rasterizer(max_workers=max_workers).render_with_model(source_image, model)
