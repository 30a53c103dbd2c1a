"""
Little Planet Projection Examples

This package contains example scripts demonstrating the usage of the little planet renderer:
- Rendering several views of one panorama
- Benchmarking the parallel rasterizer against worker counts and canvas sizes
"""
