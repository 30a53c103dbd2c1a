import math

import numpy as np
import pytest
import yaml

from littleplanet.projection_params import (ProjectionConfigError, ProjectionParams, Rotation, as_size,
                                            params_from_dict, parse_projection_params,
                                            parse_projection_params_dict)


def test_defaults_match_interactive_start_state():
  params = ProjectionParams()
  assert params.offset == (0.0, 0.4)
  assert params.rotation_angles == (0.0, 0.09, 0.0)
  assert params.scale == 1.5
  assert params.canvas_size == (600, 600)


def test_params_are_immutable():
  params = ProjectionParams()
  with pytest.raises(AttributeError):
    params.scale = 2.0
  with pytest.raises(AttributeError):
    params.offset = (0.5, 0.5)


def test_replace_returns_new_value():
  params = ProjectionParams()
  changed = params.replace(scale=3.0, canvas_width=300)
  assert changed.scale == 3.0
  assert changed.canvas_size == (300, 600)
  assert params.scale == 1.5
  assert changed != params


def test_equal_params_hash_equal():
  a = ProjectionParams(offset=(0.1, 0.2), scale=2)
  b = ProjectionParams(offset=[0.1, 0.2], scale=2.0)
  assert a == b
  assert hash(a) == hash(b)


@pytest.mark.parametrize("scale", [0.0, -1.0, float('nan'), float('inf')])
def test_degenerate_scale_rejected(scale):
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(scale=scale)


@pytest.mark.parametrize("width,height", [(0, 600), (600, 0), (-5, 10)])
def test_empty_canvas_rejected(width, height):
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(canvas_width=width, canvas_height=height)


def test_malformed_values_rejected():
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(offset=(0.1, 0.2, 0.3))
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(rotation=(0.0, 0.1))
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(offset=("a", 0.0))
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(rotation=(0.0, float('nan'), 0.0))
  with pytest.raises(ProjectionConfigError):
    ProjectionParams(canvas_width=10.5)


def test_values_outside_ui_ranges_accepted():
  params = ProjectionParams(offset=(-3.0, 2.0), rotation=(-7.0, 10.0, 4.0), scale=25.0)
  assert params.offset == (-3.0, 2.0)
  assert params.scale == 25.0


def test_config_error_is_a_value_error():
  assert issubclass(ProjectionConfigError, ValueError)


def test_as_size():
  assert as_size((3, 4), 'image size') == (3, 4)
  with pytest.raises(ProjectionConfigError):
    as_size((0, 4), 'image size')
  with pytest.raises(ProjectionConfigError):
    as_size(5, 'image size')
  with pytest.raises(ProjectionConfigError):
    as_size((True, 4), 'image size')


def test_identity_rotation():
  np.testing.assert_allclose(Rotation.identity().matrix, np.eye(3))
  np.testing.assert_allclose(Rotation.from_euler_angles(0.0, 0.0, 0.0).matrix, np.eye(3))


def test_primitive_rotation_axes():
  half_pi = math.pi / 2
  # roll about X takes +y to +z
  np.testing.assert_allclose(Rotation.from_euler_angles(half_pi, 0, 0).apply([0, 1, 0]), [0, 0, 1], atol=1e-12)
  # pitch about Y takes +z to +x
  np.testing.assert_allclose(Rotation.from_euler_angles(0, half_pi, 0).apply([0, 0, 1]), [1, 0, 0], atol=1e-12)
  # yaw about Z takes +x to +y
  np.testing.assert_allclose(Rotation.from_euler_angles(0, 0, half_pi).apply([1, 0, 0]), [0, 1, 0], atol=1e-12)


def test_euler_order_is_roll_then_pitch_then_yaw():
  roll, pitch, yaw = 0.3, 1.1, 2.4
  combined = Rotation.from_euler_angles(roll, pitch, yaw)
  composed = (Rotation.from_euler_angles(0, 0, yaw) @ Rotation.from_euler_angles(0, pitch, 0)
              @ Rotation.from_euler_angles(roll, 0, 0))
  np.testing.assert_allclose(combined.matrix, composed.matrix, atol=1e-12)


def test_rotation_inverse_and_stacked_apply():
  rotation = Rotation.from_euler_angles(0.4, 2.0, 1.3)
  np.testing.assert_allclose((rotation @ rotation.inverse()).matrix, np.eye(3), atol=1e-12)
  
  vectors = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.3, -0.2, 0.9]])
  rotated = rotation.apply(vectors)
  assert rotated.shape == (3, 3)
  np.testing.assert_allclose(rotated[2], rotation.matrix @ vectors[2])
  np.testing.assert_allclose(np.linalg.norm(rotated, axis=1), np.linalg.norm(vectors, axis=1))


def test_rotation_is_immutable():
  rotation = Rotation.identity()
  with pytest.raises(ValueError):
    rotation.matrix[0, 0] = 2.0
  with pytest.raises(AttributeError):
    rotation.foo = 1


def test_rotation_rejects_bad_matrix():
  with pytest.raises(ProjectionConfigError):
    Rotation(np.eye(2))
  with pytest.raises(ProjectionConfigError):
    Rotation.from_euler_angles(0.0, float('inf'), 0.0)


def test_parse_projection_params(tmp_path):
  path = tmp_path / "params.yaml"
  path.write_text(
    "canvas:\n"
    "  width: 320\n"
    "  height: 240\n"
    "offset: [0.25, -0.5]\n"
    "rotation: [0.1, 0.2, 0.3]\n"
    "scale: 2.0\n"
  )
  params = parse_projection_params(str(path))
  assert params.canvas_size == (320, 240)
  assert params.offset == (0.25, -0.5)
  assert params.rotation_angles == (0.1, 0.2, 0.3)
  assert params.scale == 2.0
  
  assert parse_projection_params_dict(str(path)) == params.to_dict()


def test_partial_config_uses_defaults(tmp_path):
  path = tmp_path / "params.yaml"
  path.write_text("scale: 3.0\n")
  params = parse_projection_params(str(path))
  assert params.scale == 3.0
  assert params.offset == ProjectionParams().offset
  assert params.canvas_size == (600, 600)


def test_to_dict_matches_yaml_layout(tmp_path):
  params = ProjectionParams(offset=(0.5, 0.5), rotation=(0.0, 1.0, 0.0), scale=0.5,
                            canvas_width=64, canvas_height=32)
  path = tmp_path / "params.yaml"
  path.write_text(yaml.safe_dump(params.to_dict()))
  assert parse_projection_params(str(path)) == params


def test_parse_missing_file(tmp_path):
  with pytest.raises(FileNotFoundError):
    parse_projection_params(str(tmp_path / "missing.yaml"))


def test_parse_invalid_yaml(tmp_path):
  path = tmp_path / "bad.yaml"
  path.write_text("offset: [0.1, 0.2\nscale: :\n")
  with pytest.raises(ProjectionConfigError):
    parse_projection_params(str(path))


def test_parse_invalid_layout(tmp_path):
  path = tmp_path / "bad.yaml"
  path.write_text("- 1\n- 2\n")
  with pytest.raises(ProjectionConfigError):
    parse_projection_params(str(path))
  
  with pytest.raises(ProjectionConfigError):
    params_from_dict({'canvas': 600})
  with pytest.raises(ProjectionConfigError):
    params_from_dict({'scale': -2})
