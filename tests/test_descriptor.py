import json
from pathlib import Path

import numpy as np
import pytest

import devices
from devices import default_chain
from kinematics import TopologyError, anchor, chain_from_descriptor, chain_from_file, export, mount

DEFAULT_ARM = Path(devices.__file__).parent / "robots" / "default_arm.json"


def test_bundled_descriptor_matches_default_arm():
    chain = chain_from_file(DEFAULT_ARM)
    assert export(chain) == export(default_chain())
    assert chain.limits() == default_chain().limits()


def test_descriptor_from_file(tmp_path):
    path = tmp_path / "slide.json"
    path.write_text(json.dumps({
        "links": [{}, {"extent": [10, 10, 10]}],
        "joints": [{"name": "slide", "type": "prismatic", "base": 0, "attachment": 1,
                    "axis": [1, 0, 0], "limits": [0, 50],
                    "max_velocity": 20, "max_acceleration": 5}],
    }))
    sent = []
    chain = chain_from_file(str(path), sender=sent.append)
    chain.update([25.0])
    np.testing.assert_allclose(chain.world_transform(1).position, (25.0, 0.0, 0.0), atol=1e-9)
    assert chain.limits() == [{"index": 0, "min": 0.0, "max": 50.0,
                               "max_velocity": 20.0, "max_acceleration": 5.0}]
    chain.move([10.0])
    assert sent == [{"type": "move", "state": [10.0]}]


def test_pivot_form():
    chain = chain_from_descriptor({
        "links": [{}, {}],
        "joints": [{"name": "j", "base": 0, "attachment": 1,
                    "pivot": {"position": [0, 0, 100], "orientation": [1, 0, 0, 0]}}],
    })
    assert chain.get_joint("j").kind.value == "revolute"
    assert chain.world_transform(1).position == (0.0, 0.0, 100.0)


def test_anchor_is_inverse_of_mount():
    place = mount((1.0, 2.0, 3.0), (1.0, 0.0, 0.0))
    assert place.compose(anchor((1.0, 2.0, 3.0), (1.0, 0.0, 0.0))).isclose(mount())


@pytest.mark.parametrize("joint", [
    {"name": "j", "attachment": 1},
    {"name": "j", "base": 0, "attachment": 5},
    {"name": "j", "type": "ball", "base": 0, "attachment": 1},
    {"name": "j", "base": 1, "attachment": 1},
])
def test_topology_errors(joint):
    with pytest.raises(TopologyError):
        chain_from_descriptor({"links": [{}, {}], "joints": [joint]})


def test_second_parent_rejected():
    with pytest.raises(TopologyError):
        chain_from_descriptor({
            "links": [{}, {}, {}],
            "joints": [{"base": 0, "attachment": 2}, {"base": 1, "attachment": 2}],
        })


def test_bad_extent():
    with pytest.raises(TopologyError):
        chain_from_descriptor({"links": [{"extent": [1, 2]}]})
