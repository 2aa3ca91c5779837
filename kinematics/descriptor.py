"""
descriptor.py
-------------
Build a KinematicsChain from a robot descriptor dict (or JSON file).

Descriptor layout::

    {
      "links": [
        {},                                   # zero-size root
        {"extent": [150, 150, 2000]}
      ],
      "joints": [
        {
          "name": "swing", "type": "revolute",
          "base": 0, "attachment": 1,
          "mount":  {"position": [0, 0, 0], "direction": [0, 0, 1]},
          "anchor": {"position": [0, 0, -1000]},
          "axis": [0, 0, 1],
          "limits": [-180, 180],
          "max_velocity": 180, "max_acceleration": 60
        }
      ]
    }

``mount`` places the joint frame in the base link, looking along
``direction``. ``anchor`` is the point (and direction) on the attachment
that meets the joint frame; alternatively ``pivot`` gives the attachment's
placement in the joint frame directly as ``position`` + ``orientation``
(w, x, y, z).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from axis_math import Transform
from kinematics.errors import TopologyError
from kinematics.joint import Joint
from kinematics.kinematics_chain import KinematicsChain, Sender
from kinematics.link import Extent, Link


def mount(position=(0.0, 0.0, 0.0), direction=(0.0, 0.0, 1.0)) -> Transform:
    """Joint frame at *position* in the base link, its +Z along *direction*."""
    return Transform.from_direction(position, direction)


def anchor(position=(0.0, 0.0, 0.0), direction=(0.0, 0.0, 1.0)) -> Transform:
    """Attachment placement such that its local *position* sits on the joint.

    *direction* is the attachment-local direction that is aligned with the
    joint frame's +Z.
    """
    return Transform.from_direction(position, direction).inverse()


def _parse_link(d: dict) -> Link:
    extent = d.get("extent")
    if extent is None:
        return Link()
    if len(extent) != 3:
        raise TopologyError(f"Link extent must have 3 values, got {extent}")
    return Link(Extent(*(float(v) for v in extent)))


def _parse_placement(d: Optional[dict], helper) -> Optional[Transform]:
    if d is None:
        return None
    return helper(d.get("position", (0.0, 0.0, 0.0)), d.get("direction", (0.0, 0.0, 1.0)))


def _parse_joint(d: dict, links: list[Link]) -> Joint:
    try:
        base = links[int(d["base"])]
        attachment = links[int(d["attachment"])]
    except KeyError as e:
        raise TopologyError(f"Joint descriptor is missing {e}") from None
    except IndexError:
        raise TopologyError(f"Joint '{d.get('name', '')}' references an unknown link") from None

    if "pivot" in d:
        p = d["pivot"]
        pivot = Transform(position=tuple(p.get("position", (0.0, 0.0, 0.0))),
                          orientation=tuple(p.get("orientation", (1.0, 0.0, 0.0, 0.0))))
    else:
        pivot = _parse_placement(d.get("anchor"), anchor)

    joint = Joint(d.get("name", ""), d.get("type", "revolute"), base, attachment,
                  _parse_placement(d.get("mount"), mount), pivot)
    if "axis" in d:
        joint.set_axis(d["axis"])
    if "limits" in d:
        joint.set_constraints(*d["limits"])
    if "max_velocity" in d or "max_acceleration" in d:
        joint.set_dynamics(d.get("max_velocity", joint.max_velocity),
                           d.get("max_acceleration", joint.max_acceleration))
    return joint


def chain_from_descriptor(descriptor: dict[str, Any], sender: Optional[Sender] = None) -> KinematicsChain:
    """Assemble a chain from *descriptor*. Any topology error aborts the build."""
    chain = KinematicsChain(sender=sender)
    links = [chain.add_link(_parse_link(ld)) for ld in descriptor.get("links", [])]
    for jd in descriptor.get("joints", []):
        chain.add_joint(_parse_joint(jd, links))
    return chain


def chain_from_file(path: Union[str, Path], sender: Optional[Sender] = None) -> KinematicsChain:
    """Load a robot descriptor from a JSON file and assemble its chain."""
    with open(path) as f:
        return chain_from_descriptor(json.load(f), sender=sender)
