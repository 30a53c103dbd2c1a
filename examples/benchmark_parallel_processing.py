"""
Benchmark script comparing little planet render times for different canvas sizes and thread counts.

A synthetic equirectangular gradient is used as the source so the script runs without data files.
"""

import sys
import os
import time
import numpy as np

# Add the parent directory to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from littleplanet.projection_params import ProjectionParams
from littleplanet.rasterizer import Rasterizer


def make_gradient_panorama(width: int = 2048, height: int = 1024) -> np.ndarray:
  """Build an RGB equirectangular test image: hue-like ramps along both axes."""
  cols = np.linspace(0, 255, width, dtype=np.float64)
  rows = np.linspace(0, 255, height, dtype=np.float64)
  img = np.empty((height, width, 3), dtype=np.uint8)
  img[:, :, 0] = cols[np.newaxis, :]
  img[:, :, 1] = rows[:, np.newaxis]
  img[:, :, 2] = 255 - cols[np.newaxis, :]
  return img


def benchmark_render_performance():
  """Benchmark the parallel rasterizer."""
  
  print("=" * 60)
  print("LITTLE PLANET PARALLEL RENDERING BENCHMARK")
  print("=" * 60)
  
  source = make_gradient_panorama()
  print(f"✓ Synthetic source image: {source.shape[1]}x{source.shape[0]}")
  
  test_sizes = [
    (300, 300, "Small"),
    (600, 600, "Default"),
    (1200, 1200, "Large")
  ]
  worker_counts = [1, 2, 4, 8]
  
  for width, height, size_name in test_sizes:
    print(f"\n{size_name} canvas size: {width}x{height}")
    print("-" * 40)
    
    params = ProjectionParams(offset=(0.0, 0.0), rotation=(0.0, 0.09, 0.0), scale=1.5,
                              canvas_width=width, canvas_height=height)
    baseline = None
    
    for workers in worker_counts:
      rasterizer = Rasterizer(max_workers=workers)
      
      start_time = time.time()
      canvas = rasterizer.render(source, params)
      total_time = time.time() - start_time
      
      total_pixels = width * height
      pixels_per_second = total_pixels / total_time if total_time > 0 else 0
      
      if baseline is None:
        baseline = canvas
      identical = np.array_equal(baseline, canvas)
      
      print(f"✓ {workers} thread(s): {total_time:.4f} seconds, {pixels_per_second:,.0f} pixels/second, "
            f"identical output: {identical}")
  
  print("\n" + "=" * 60)


if __name__ == "__main__":
  benchmark_render_performance()
