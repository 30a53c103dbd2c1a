"""
Little Planet Projection Core Modules

This package contains the core algorithms for little planet rendering:
- Projection parameter handling and validation
- Inverse stereographic projection model
- Bilinear resampling rasterizer with parallel row dispatch
- Single-flight render scheduling
- Image loading and saving helpers
"""

from .projection_params import (ProjectionConfigError, ProjectionParams, Rotation,
                                parse_projection_params, parse_projection_params_dict)
from .stereographic_projection import StereographicProjection
from .rasterizer import (Rasterizer, render, generate_projection_maps, apply_projection_maps,
                         sample_bilinear, sample_bilinear_points)
from .render_scheduler import RenderScheduler

__all__ = [
  'ProjectionConfigError',
  'ProjectionParams',
  'Rotation',
  'parse_projection_params',
  'parse_projection_params_dict',
  'StereographicProjection',
  'Rasterizer',
  'render',
  'generate_projection_maps',
  'apply_projection_maps',
  'sample_bilinear',
  'sample_bilinear_points',
  'RenderScheduler'
]
