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
import threading
import time
from typing import Callable, Optional, Tuple
from .projection_params import ProjectionParams
from .rasterizer import Rasterizer


class RenderScheduler:
  """
  Single-flight scheduler for background renders.
  
  At most one render runs at a time. A request that arrives while a render is in
  flight is dropped, or, with keep_latest=True, parked in a single pending slot
  (newer requests replace older ones) and rendered when the current pass finishes.
  Results are published through latest_result and the optional on_complete callback,
  which runs on the worker thread.
  """
  
  def __init__(self, rasterizer: Optional[Rasterizer] = None, keep_latest: bool = False,
               on_complete: Optional[Callable[[np.ndarray, ProjectionParams], None]] = None):
    self.rasterizer = rasterizer if rasterizer is not None else Rasterizer()
    self.keep_latest = keep_latest
    self.on_complete = on_complete
    
    self._lock = threading.Lock()
    self._idle = threading.Event()
    self._idle.set()
    self._pending: Optional[Tuple[np.ndarray, ProjectionParams]] = None
    self._thread: Optional[threading.Thread] = None
    self._latest_result: Optional[Tuple[np.ndarray, ProjectionParams]] = None
    self._last_error: Optional[BaseException] = None
    self._callback_error: Optional[BaseException] = None
    self._dropped_count = 0
  
  @property
  def is_busy(self) -> bool:
    return not self._idle.is_set()
  
  @property
  def latest_result(self) -> Optional[Tuple[np.ndarray, ProjectionParams]]:
    """(canvas, params) of the last completed render, or None."""
    with self._lock:
      return self._latest_result
  
  @property
  def last_error(self) -> Optional[BaseException]:
    with self._lock:
      return self._last_error
  
  @property
  def callback_error(self) -> Optional[BaseException]:
    """Last exception raised by on_complete; the render itself still counts as completed."""
    with self._lock:
      return self._callback_error
  
  @property
  def dropped_count(self) -> int:
    with self._lock:
      return self._dropped_count
  
  def request(self, source_image: np.ndarray, params: ProjectionParams) -> bool:
    """
    Ask for a render of `source_image` with `params`.
    
    Returns:
    - True if a render was started for this request, False if one was already in flight
    """
    with self._lock:
      if self._idle.is_set():
        self._idle.clear()
        self._thread = threading.Thread(target=self._run, args=(source_image, params))
        self._thread.daemon = True
        self._thread.start()
        return True
      
      if self.keep_latest:
        if self._pending is not None:
          self._dropped_count += 1
        self._pending = (source_image, params)
        print(f"Render in progress, keeping latest request: {params}")
      else:
        self._dropped_count += 1
        print(f"Render in progress, dropping request: {params}")
      return False
  
  def wait(self, timeout: Optional[float] = None) -> bool:
    """
    Block until no render is in flight.
    
    Returns:
    - True if the scheduler is idle, False on timeout
    """
    return self._idle.wait(timeout)
  
  def _run(self, source_image: np.ndarray, params: ProjectionParams) -> None:
    released = False
    try:
      while True:
        self._render_once(source_image, params)
        
        with self._lock:
          if self._pending is None:
            self._idle.set()
            released = True
            return
          source_image, params = self._pending
          self._pending = None
    except BaseException as e:
      print(f"Render worker stopped: {e!r}")
      with self._lock:
        self._last_error = e
      raise
    finally:
      if not released:
        with self._lock:
          self._pending = None
          self._idle.set()
  
  def _render_once(self, source_image: np.ndarray, params: ProjectionParams) -> None:
    start_time = time.time()
    try:
      canvas = self.rasterizer.render(source_image, params)
    except Exception as e:
      print(f"Render error: {e}")
      with self._lock:
        self._last_error = e
      return
    
    with self._lock:
      self._latest_result = (canvas, params)
      self._last_error = None
    print(f"\033[33mScheduled render completed in {time.time() - start_time:.4f} seconds\033[0m")
    
    if self.on_complete is not None:
      try:
        self.on_complete(canvas, params)
      except Exception as e:
        print(f"on_complete callback error: {e}")
        with self._lock:
          self._callback_error = e
