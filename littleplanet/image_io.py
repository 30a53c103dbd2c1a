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

import os
import cv2
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from PIL import Image


def load_image(filename) -> np.ndarray:
  """
  Load an image file as an RGB uint8 array of shape (H, W, 3).
  
  Raises:
  FileNotFoundError if the file doesn't exist.
  ValueError if OpenCV cannot decode it.
  """
  if not os.path.isfile(filename):
    raise FileNotFoundError(f"Image file not found: {filename}")
  
  img = cv2.imread(str(filename), cv2.IMREAD_COLOR)
  if img is None:
    raise ValueError(f"Could not decode image: {filename}")
  
  return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def save_image(filename, canvas: np.ndarray) -> None:
  """
  Save an RGB canvas to disk. The format follows the file extension.
  
  Raises:
  ValueError if the canvas cannot be encoded or written.
  """
  canvas = np.asarray(canvas)
  if canvas.ndim != 3 or canvas.shape[2] != 3:
    raise ValueError(f"Canvas must have shape (H, W, 3), got {canvas.shape}")
  
  bgr = cv2.cvtColor(np.ascontiguousarray(canvas, dtype=np.uint8), cv2.COLOR_RGB2BGR)
  try:
    ok = cv2.imwrite(str(filename), bgr)
  except cv2.error as e:
    raise ValueError(f"Failed to save image '{filename}': {e}")
  if not ok:
    raise ValueError(f"Failed to save image '{filename}'")
  print(f"Saved: {filename}")


def to_display_image(canvas: np.ndarray) -> Image.Image:
  """Convert an RGB canvas to a PIL image for on-screen display."""
  return Image.fromarray(np.ascontiguousarray(canvas, dtype=np.uint8))


def save_comparison(source: np.ndarray, canvas: np.ndarray, filename) -> None:
  """
  Save the source image and the rendered little planet side by side.
  """
  fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(15, 7))
  
  ax1.imshow(source)
  ax1.set_title('Source Image', fontsize=14)
  ax1.axis('off')
  
  ax2.imshow(canvas)
  ax2.set_title('Little Planet', fontsize=14)
  ax2.axis('off')
  
  plt.tight_layout()
  try:
    fig.savefig(filename, dpi=150, bbox_inches='tight')
  finally:
    plt.close(fig)
  
  print(f"Comparison saved as '{filename}'")
