import math
import xml.etree.ElementTree as ET

import numpy as np
import pytest

from axis_math import Transform, quat_rotate
from devices import default_chain
from kinematics import (ExportConfig, ExportError, Extent, Joint, KinematicsChain, Link, anchor,
                        export, mount)
from kinematics.urdf import rpy


def _parse(text):
    return ET.fromstring(text)


def _floats(attr):
    return [float(v) for v in attr.split()]


@pytest.fixture
def arm():
    return default_chain()


def test_export_is_deterministic(arm):
    assert export(arm) == export(arm)


def test_export_ignores_current_state(arm):
    before = export(arm)
    arm.update([30.0, 200.0, -20.0, 10.0, 40.0])
    assert export(arm) == before


def test_structure(arm):
    text = export(arm, ExportConfig(robot_name="arm"))
    assert text.startswith('<?xml version="1.0"?>\n')
    robot = _parse(text)
    assert robot.tag == "robot"
    assert robot.get("name") == "arm"
    assert [link.get("name") for link in robot.findall("link")] == [str(i) for i in range(7)]
    assert [joint.get("name") for joint in robot.findall("joint")] == \
        ["swing", "lift", "elbow", "wrist", "coupling", "gripper"]


def test_link_geometry(arm):
    links = _parse(export(arm)).findall("link")
    root = links[0]
    assert root.find("visual/origin") is not None
    assert root.find("visual/geometry") is None
    assert root.find("collision") is None

    column = links[1]
    assert column.find("visual/geometry/box").get("size") == "0.15 0.15 2"
    assert column.find("collision/geometry/box").get("size") == "0.15 0.15 2"
    assert _floats(column.find("visual/origin").get("xyz")) == pytest.approx([0.0, 0.0, 1.0])


def test_prismatic_joint(arm):
    lift = _parse(export(arm)).find("joint[@name='lift']")
    assert lift.get("type") == "prismatic"
    assert lift.find("parent").get("link") == "1"
    assert lift.find("child").get("link") == "2"
    assert _floats(lift.find("origin").get("xyz")) == pytest.approx([0.0, -0.075, 1.925])
    assert _floats(lift.find("origin").get("rpy")) == pytest.approx([0.0, math.pi / 2, 0.0], abs=1e-5)
    assert _floats(lift.find("axis").get("xyz")) == pytest.approx([1.0, 0.0, 0.0], abs=1e-9)

    limit = lift.find("limit")
    assert float(limit.get("lower")) == 0.0
    assert float(limit.get("upper")) == pytest.approx(1.5)
    assert float(limit.get("velocity")) == pytest.approx(0.1)
    assert limit.get("effort") == "0"


def test_revolute_limit_units(arm):
    elbow = _parse(export(arm)).find("joint[@name='elbow']/limit")
    assert float(elbow.get("upper")) == pytest.approx(0.8 * math.pi, abs=1e-5)
    assert float(elbow.get("lower")) == pytest.approx(-0.8 * math.pi, abs=1e-5)

    elbow = _parse(export(arm, ExportConfig(revolute_unit="degrees"))).find("joint[@name='elbow']/limit")
    assert float(elbow.get("upper")) == pytest.approx(144.0)
    assert float(elbow.get("velocity")) == pytest.approx(180.0)


def test_fixed_joint_has_no_limit(arm):
    coupling = _parse(export(arm)).find("joint[@name='coupling']")
    assert coupling.get("type") == "fixed"
    assert coupling.find("limit") is None
    assert coupling.find("axis") is None


def test_unnamed_joint():
    chain = KinematicsChain()
    root = chain.add_link(Link())
    tip = chain.add_link(Link())
    chain.add_joint(Joint.revolute("", root, tip))
    joint = _parse(export(chain)).find("joint")
    assert joint.get("name") == "joint_0"


def test_invalid_config():
    with pytest.raises(ValueError):
        ExportConfig(revolute_unit="gradians")
    with pytest.raises(ValueError):
        ExportConfig(length_scale=0.0)


def test_unsupported_joint_type(arm):
    arm.get_joint("wrist").kind = "ball"
    with pytest.raises(ExportError):
        export(arm)


def test_rpy():
    assert rpy(Transform.identity()) == pytest.approx((0.0, 0.0, 0.0))
    tilted = Transform.from_direction((0.0, 0.0, 0.0), (0.0, -1.0, 1.0))
    assert rpy(tilted) == pytest.approx((math.pi / 4, 0.0, 0.0), abs=1e-9)
    forward = Transform.from_direction((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    assert rpy(forward) == pytest.approx((0.0, math.pi / 2, 0.0), abs=1e-9)


def _rotation(axis, angle):
    k = np.asarray(axis, dtype=float)
    k = k / np.linalg.norm(k)
    skew = np.array([[0.0, -k[2], k[1]], [k[2], 0.0, -k[0]], [-k[1], k[0], 0.0]])
    return np.eye(3) + math.sin(angle) * skew + (1.0 - math.cos(angle)) * skew @ skew


def _homogeneous(origin):
    roll, pitch, yaw = _floats(origin.get("rpy"))
    h = np.eye(4)
    h[:3, :3] = _rotation((0, 0, 1), yaw) @ _rotation((0, 1, 0), pitch) @ _rotation((1, 0, 0), roll)
    h[:3, 3] = _floats(origin.get("xyz"))
    return h


def _urdf_poses(text, values):
    """Link geometry poses (metres) of a URDF with joint values in mm and degrees."""
    robot = _parse(text)
    by_child = {joint.find("child").get("link"): joint for joint in robot.findall("joint")}
    values = iter(values)
    motion = {joint.get("name"): next(values)
              for joint in robot.findall("joint") if joint.get("type") != "fixed"}

    frames = {}

    def frame(name):
        if name not in frames:
            joint = by_child.get(name)
            if joint is None:
                frames[name] = np.eye(4)
            else:
                move = np.eye(4)
                if joint.get("type") == "revolute":
                    move[:3, :3] = _rotation(_floats(joint.find("axis").get("xyz")),
                                             math.radians(motion[joint.get("name")]))
                elif joint.get("type") == "prismatic":
                    move[:3, 3] = np.array(_floats(joint.find("axis").get("xyz"))) \
                        * motion[joint.get("name")] * 0.001
                parent = frame(joint.find("parent").get("link"))
                frames[name] = parent @ _homogeneous(joint.find("origin")) @ move
        return frames[name]

    return {link.get("name"): frame(link.get("name")) @ _homogeneous(link.find("visual/origin"))
            for link in robot.findall("link")}


def _assert_matches_chain(chain):
    poses = _urdf_poses(export(chain), chain.state)
    for link in chain.links:
        expected = chain.world_transform(link).to_matrix()
        expected[:3, 3] *= 0.001
        np.testing.assert_allclose(poses[link.name], expected, atol=1e-6,
                                   err_msg=f"link {link.name}")


def _tilted_chain():
    chain = KinematicsChain()
    root = chain.add_link(Link())
    a = chain.add_link(Link(Extent(40.0, 20.0, 100.0)))
    b = chain.add_link(Link(Extent(10.0, 10.0, 10.0)))
    chain.add_joint(
        Joint.revolute("tilt", root, a, mount((0.0, 0.0, 100.0), (1.0, 1.0, 0.0)),
                       anchor((0.0, 20.0, -50.0), (0.0, 1.0, 0.0)))
        .set_axis((1.0, 0.0, 0.0))
    )
    chain.add_joint(
        Joint.prismatic("slide", a, b, mount((10.0, 0.0, 50.0), (0.0, -1.0, 0.0)),
                        anchor((5.0, 0.0, 0.0), (1.0, 0.0, 0.0)))
        .set_axis((1.0, 0.0, 1.0))
    )
    return chain


@pytest.mark.parametrize("state", [
    [0.0, 0.0, 0.0, 0.0, 0.0],
    [30.0, 400.0, -45.0, 60.0, 40.0],
    [-120.0, 1500.0, 144.0, -170.0, 100.0],
])
def test_urdf_kinematics_match_chain(arm, state):
    """Forward kinematics of the exported description reproduce every link pose."""
    arm.update(state)
    _assert_matches_chain(arm)


@pytest.mark.parametrize("state", [[0.0, 0.0], [35.0, 20.0], [-80.0, -60.0]])
def test_urdf_kinematics_match_tilted_chain(state):
    chain = _tilted_chain()
    chain.update(state)
    _assert_matches_chain(chain)


def test_revolute_axis_matches_turn_direction(arm):
    """Positive revolute values turn the same way in the chain and the description."""
    swing = _parse(export(arm)).find("joint[@name='swing']")
    assert _floats(swing.find("axis").get("xyz")) == pytest.approx([0.0, 0.0, -1.0])

    arm.update([90.0, 0.0, 0.0, 0.0, 0.0])
    column = _urdf_poses(export(arm), arm.state)["1"]
    np.testing.assert_allclose(column[:3, 0], (0.0, -1.0, 0.0), atol=1e-9)
    np.testing.assert_allclose(quat_rotate(arm.world_transform(1).orientation, (1.0, 0.0, 0.0)),
                               (0.0, -1.0, 0.0), atol=1e-9)
