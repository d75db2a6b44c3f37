"""Tests for URDF parser functionality."""

import logging
from pathlib import Path

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from jax_kintree.core import JointType, TreeModel
from jax_kintree.errors import TreeParseError
from jax_kintree.io import load_urdf, parse_urdf

FIXTURE = Path(__file__).parent / "fixtures" / "test_arm.urdf"


def _robot(body: str) -> str:
    return f'<robot name="r">{body}</robot>'


def test_load_test_arm_urdf():
    """Test loading the test arm and verify the TreeModel structure."""
    robot = load_urdf(str(FIXTURE))

    assert isinstance(robot, TreeModel)

    # 11 links, root first, parents in breadth-first order
    assert robot.link_names == (
        "base_link", "torso", "camera_link", "lift_link", "shoulder_link",
        "camera_optical", "upper_arm", "forearm", "tool", "finger_left", "finger_right",
    )
    assert robot.root == "base_link"
    assert robot.parent_indices[0] == 0
    for i in range(1, len(robot.link_names)):
        assert robot.parent_indices[i] < i

    # Fixed joints are not actuated
    assert robot.joint_names == (
        "lift", "shoulder_pan", "shoulder_lift", "elbow",
        "finger_left_joint", "finger_right_joint",
    )

    # Verify joint transforms are valid SE(3) matrices
    for segment in robot.segments:
        T = segment.origin
        assert T.shape == (4, 4)
        np.testing.assert_allclose(T[3, :], jnp.array([0, 0, 0, 1]), rtol=1e-12, atol=1e-12)
        R = T[:3, :3]
        np.testing.assert_allclose(R @ R.T, jnp.eye(3), rtol=1e-10, atol=1e-10)


def test_segments_match_joints():
    robot = load_urdf(str(FIXTURE))
    segments = {s.name: s for s in robot.segments}

    root = segments["base_link"]
    assert root.is_fixed
    assert root.joint_name == ""
    np.testing.assert_array_equal(root.origin, jnp.eye(4))

    torso = segments["torso"]
    assert torso.joint_name == "torso_joint"
    assert torso.parent == "base_link"
    assert torso.joint_type is JointType.FIXED
    np.testing.assert_allclose(torso.origin[:3, 3], [0.0, 0.0, 0.5])
    np.testing.assert_array_equal(torso.axis, jnp.zeros(6))

    # Revolute: unit axis in the angular half
    upper_arm = segments["upper_arm"]
    assert upper_arm.joint_type is JointType.REVOLUTE
    np.testing.assert_allclose(upper_arm.axis, [0, 0, 0, 0, 1, 0])

    assert segments["forearm"].joint_type is JointType.CONTINUOUS

    # Prismatic: unit axis in the linear half
    lift = segments["lift_link"]
    assert lift.joint_type is JointType.PRISMATIC
    np.testing.assert_allclose(lift.axis, [0, 0, 1, 0, 0, 0])
    np.testing.assert_allclose(lift.origin[:3, 3], [0.0, 0.3, 0.0])


def test_mimic_joint():
    robot = load_urdf(str(FIXTURE))
    segments = {s.joint_name: s for s in robot.segments}

    right = segments["finger_right_joint"]
    assert right.mimic_joint == "finger_left_joint"
    assert right.mimic_multiplier == 1.0
    assert right.mimic_offset == 0.0
    assert segments["finger_left_joint"].mimic_joint is None


def test_parse_urdf_matches_load_urdf():
    from_file = load_urdf(str(FIXTURE))
    from_text = parse_urdf(FIXTURE.read_text())

    assert from_text.link_names == from_file.link_names
    assert from_text.parent_indices == from_file.parent_indices
    for a, b in zip(from_text.segments, from_file.segments):
        np.testing.assert_array_equal(a.origin, b.origin)
        np.testing.assert_array_equal(a.axis, b.axis)


LATIN1_URDF = (
    '<?xml version="1.0" encoding="ISO-8859-1"?>'
    '<robot name="r"><link name="base"/><link name="bras_é"/>'
    '<joint name="jé" type="fixed"><parent link="base"/><child link="bras_é"/></joint>'
    '</robot>'
)


def test_text_with_declared_encoding_keeps_non_ascii_names():
    robot = parse_urdf(LATIN1_URDF)
    assert robot.link_names == ("base", "bras_é")
    assert robot.joint_names == ("jé",)


def test_bytes_are_decoded_with_declared_encoding():
    robot = parse_urdf(LATIN1_URDF.encode("latin-1"))
    assert robot.link_names == ("base", "bras_é")


def test_tree_model_is_pytree():
    """Test that TreeModel is a valid JAX PyTree."""
    robot = load_urdf(str(FIXTURE))

    flat_robot, tree_def = jax.tree_util.tree_flatten(robot)
    reconstructed_robot = jax.tree_util.tree_unflatten(tree_def, flat_robot)

    assert reconstructed_robot.link_names == robot.link_names
    assert reconstructed_robot.joint_names == robot.joint_names
    assert reconstructed_robot.parent_indices == robot.parent_indices
    # origin and axis of every segment are leaves
    assert len(flat_robot) == 2 * len(robot.link_names)


def test_axis_is_normalized_and_defaults_to_x():
    robot = parse_urdf(_robot(
        '<link name="a"/><link name="b"/><link name="c"/>'
        '<joint name="j1" type="revolute"><parent link="a"/><child link="b"/>'
        '<axis xyz="0 0 2"/></joint>'
        '<joint name="j2" type="prismatic"><parent link="b"/><child link="c"/></joint>'
    ))
    segments = {s.joint_name: s for s in robot.segments}
    np.testing.assert_allclose(segments["j1"].axis, [0, 0, 0, 0, 0, 1])
    np.testing.assert_allclose(segments["j2"].axis, [1, 0, 0, 0, 0, 0])


def test_single_link_robot():
    robot = parse_urdf(_robot('<link name="only"/>'))
    assert robot.link_names == ("only",)
    assert robot.joint_names == ()
    assert robot.parent_indices == (0,)


def test_floating_joint_is_loaded_as_fixed(caplog):
    urdf = _robot(
        '<link name="world"/><link name="body"/>'
        '<joint name="free" type="floating"><parent link="world"/><child link="body"/>'
        '<origin xyz="1 2 3"/></joint>'
    )
    with caplog.at_level(logging.WARNING, logger="jax_kintree.io.urdf_parser"):
        robot = parse_urdf(urdf)

    assert robot.joint_names == ()
    assert robot.segments[1].joint_type is JointType.FIXED
    np.testing.assert_allclose(robot.segments[1].origin[:3, 3], [1.0, 2.0, 3.0])
    assert "free" in caplog.text


@pytest.mark.parametrize("urdf, match", [
    ("<robot><link name='a'>", "Invalid robot description"),
    ("<model><link name='a'/></model>", "Expected <robot>"),
    (_robot(""), "no links"),
    (_robot('<link/>'), "without a name"),
    (_robot('<link name="a"/><link name="a"/>'), "Duplicate link 'a'"),
    (_robot(
        '<link name="a"/><link name="b"/><link name="c"/>'
        '<joint name="j" type="fixed"><parent link="a"/><child link="b"/></joint>'
        '<joint name="j" type="fixed"><parent link="a"/><child link="c"/></joint>'
    ), "Duplicate joint 'j'"),
    (_robot(
        '<link name="a"/>'
        '<joint name="j" type="fixed"><parent link="a"/><child link="ghost"/></joint>'
    ), "unknown link 'ghost'"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="fixed"><parent link="a"/></joint>'
    ), "no <child"),
    (_robot('<link name="a"/><link name="b"/>'), "exactly one root"),
    (_robot(
        '<link name="a"/><link name="b"/><link name="c"/>'
        '<joint name="j1" type="fixed"><parent link="a"/><child link="c"/></joint>'
        '<joint name="j2" type="fixed"><parent link="b"/><child link="c"/></joint>'
    ), "more than one parent"),
    (_robot(
        '<link name="a"/><link name="b"/><link name="c"/>'
        '<joint name="j1" type="fixed"><parent link="a"/><child link="b"/></joint>'
        '<joint name="j2" type="fixed"><parent link="c"/><child link="c"/></joint>'
    ), "not reachable"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="ball"><parent link="a"/><child link="b"/></joint>'
    ), "unknown type 'ball'"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="revolute"><parent link="a"/><child link="b"/>'
        '<axis xyz="0 0 0"/></joint>'
    ), "zero-length axis"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="fixed"><parent link="a"/><child link="b"/>'
        '<origin xyz="1 2"/></joint>'
    ), "needs 3 values"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="fixed"><parent link="a"/><child link="b"/>'
        '<origin rpy="0 zero 0"/></joint>'
    ), "invalid rpy"),
    (_robot(
        '<link name="a"/><link name="b"/>'
        '<joint name="j" type="revolute"><parent link="a"/><child link="b"/>'
        '<mimic joint="nobody"/></joint>'
    ), "mimics unknown joint 'nobody'"),
])
def test_invalid_descriptions(urdf, match):
    with pytest.raises(TreeParseError, match=match):
        parse_urdf(urdf)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse_urdf("not xml at all")


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        load_urdf(str(tmp_path / "missing.urdf"))
