#!/usr/bin/env python3
"""
Render a little planet from an equirectangular image.

Example:
  python render_little_planet.py data/panorama.jpg -o output/planet.png --config config/little_planet.yaml
  python render_little_planet.py data/panorama.jpg --rotation 0 1.57 0 --scale 2.5
"""

import argparse
import sys
import time

from littleplanet import ProjectionConfigError, ProjectionParams, Rasterizer, parse_projection_params
from littleplanet.image_io import load_image, save_image, save_comparison


def build_parser():
  parser = argparse.ArgumentParser(
    prog='render_little_planet',
    description='Project an equirectangular image onto a little planet canvas.')
  parser.add_argument('input', help='source image (jpg, png, bmp, gif, webp)')
  parser.add_argument('-o', '--output', default='output.png', help='output image path (default: output.png)')
  parser.add_argument('--config', help='YAML projection parameters file')
  parser.add_argument('--offset', nargs=2, type=float, metavar=('X', 'Y'), help='canvas offset')
  parser.add_argument('--rotation', nargs=3, type=float, metavar=('ROLL', 'PITCH', 'YAW'),
                      help='rotation angles in radians')
  parser.add_argument('--scale', type=float, help='sphere radius scale')
  parser.add_argument('--size', nargs=2, type=int, metavar=('WIDTH', 'HEIGHT'), help='canvas size in pixels')
  parser.add_argument('--workers', type=int, help='number of render threads')
  parser.add_argument('--reference', action='store_true',
                      help='use the per-pixel reference renderer (slow)')
  parser.add_argument('--compare', metavar='PATH', help='also save a side-by-side comparison figure')
  return parser


def resolve_params(args) -> ProjectionParams:
  """Start from the config file (or defaults) and apply command-line overrides."""
  params = parse_projection_params(args.config) if args.config else ProjectionParams()
  
  changes = {}
  if args.offset is not None:
    changes['offset'] = args.offset
  if args.rotation is not None:
    changes['rotation'] = args.rotation
  if args.scale is not None:
    changes['scale'] = args.scale
  if args.size is not None:
    changes['canvas_width'], changes['canvas_height'] = args.size
  
  return params.replace(**changes) if changes else params


def main(argv=None) -> int:
  args = build_parser().parse_args(argv)
  
  try:
    params = resolve_params(args)
    print(f"Loaded projection parameters: {params}")
    
    source = load_image(args.input)
    print(f"Loaded source image: {source.shape[1]}x{source.shape[0]}")
    
    rasterizer = Rasterizer(use_vectorized=not args.reference, max_workers=args.workers)
    
    start_time = time.time()
    canvas = rasterizer.render(source, params)
    print(f"\033[33mTotal processing time: {time.time() - start_time:.4f} seconds\033[0m")
    
    save_image(args.output, canvas)
    if args.compare:
      save_comparison(source, canvas, args.compare)
  except (ProjectionConfigError, FileNotFoundError, ValueError) as e:
    print(f"Error: {e}")
    return 1
  
  return 0


if __name__ == "__main__":
  sys.exit(main())
