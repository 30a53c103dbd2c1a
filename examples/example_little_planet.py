import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from littleplanet.projection_params import ProjectionParams, parse_projection_params
from littleplanet.rasterizer import Rasterizer
from littleplanet.image_io import load_image, save_image

def create_little_planet_views():
  """
  Demonstrate rendering several little planet views of one panorama with the Rasterizer class.
  """
  # Parse projection parameters
  params = parse_projection_params("config/little_planet.yaml")
  
  # Load the panorama once
  panorama = load_image("data/panorama.jpg")
  
  os.makedirs("output/little_planet", exist_ok=True)
  
  rasterizer = Rasterizer(use_vectorized=True)
  
  print("Creating little planet views using the Rasterizer class...")
  
  # Default view from the config file
  print("\n1. Creating default view from config...")
  default_view = rasterizer.render(panorama, params)
  save_image("output/little_planet/panorama_default.png", default_view)
  
  # Centered planet: offset (0, 0) puts the tangent point at the canvas centre
  print("\n2. Creating centered planet...")
  centered = rasterizer.render(panorama, params.replace(offset=(0.0, 0.0)))
  save_image("output/little_planet/panorama_centered.png", centered)
  
  # Flip the sphere so the sky is in the middle ("tunnel" view)
  print("\n3. Creating inverted tunnel view...")
  tunnel = rasterizer.render(panorama, params.replace(offset=(0.0, 0.0), rotation=(0.0, 3.14159, 0.0)))
  save_image("output/little_planet/panorama_tunnel.png", tunnel)
  
  # A bigger sphere zooms in on the ground
  print("\n4. Creating zoomed view...")
  zoomed = rasterizer.render(panorama, params.replace(offset=(0.0, 0.0), scale=4.0))
  save_image("output/little_planet/panorama_zoomed.png", zoomed)
  
  # Larger canvas
  print("\n5. Creating 1200x1200 view...")
  large = rasterizer.render(panorama, ProjectionParams(offset=(0.0, 0.0), canvas_width=1200, canvas_height=1200))
  save_image("output/little_planet/panorama_large.png", large)
  
  print("\nLittle planet views completed!")
  print("Total files created: 5")

if __name__ == "__main__":
  create_little_planet_views()
