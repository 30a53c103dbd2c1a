import numpy as np
import pytest

from littleplanet.image_io import load_image, save_comparison, save_image, to_display_image


def test_png_save_and_load_keep_rgb_order(tmp_path, gradient_image):
  path = tmp_path / "canvas.png"
  save_image(str(path), gradient_image)
  loaded = load_image(str(path))
  assert loaded.dtype == np.uint8
  np.testing.assert_array_equal(loaded, gradient_image)


def test_load_missing_file(tmp_path):
  with pytest.raises(FileNotFoundError):
    load_image(str(tmp_path / "missing.png"))


def test_load_undecodable_file(tmp_path):
  path = tmp_path / "broken.png"
  path.write_bytes(b"not an image")
  with pytest.raises(ValueError):
    load_image(str(path))


def test_save_rejects_bad_canvas(tmp_path):
  with pytest.raises(ValueError):
    save_image(str(tmp_path / "bad.png"), np.zeros((4, 4), dtype=np.uint8))


def test_save_rejects_unknown_format(tmp_path, gradient_image):
  with pytest.raises(ValueError):
    save_image(str(tmp_path / "canvas.unknownformat"), gradient_image)


def test_display_image(gradient_image):
  image = to_display_image(gradient_image)
  assert image.size == (8, 6)
  assert image.mode == 'RGB'
  assert image.getpixel((3, 2)) == tuple(int(v) for v in gradient_image[2, 3])


def test_save_comparison(tmp_path, gradient_image):
  path = tmp_path / "comparison.png"
  save_comparison(gradient_image, gradient_image[::-1], str(path))
  assert path.exists() and path.stat().st_size > 0
