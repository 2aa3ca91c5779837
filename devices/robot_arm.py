"""
robot_arm.py
------------
The default six-joint arm.

Links (millimetres, width x height x depth):
  0  root        no extent, at the scene origin
  1  column      150 x 150 x 2000, stands on the root
  2  arm         150 x 150 x 700,  slides along the column
  3  lower arm   150 x 150 x 750
  4  extension   150 x 150 x 300
  5  coupling    150 x 150 x 50
  6  gripper     50 x 150 x 125

Joints:
  swing    revolute   root      -> column     about the vertical
  lift     prismatic  column    -> arm        0 .. 1500 mm, downwards
  elbow    revolute   arm       -> lower arm  ±144°
  wrist    revolute   lower arm -> extension
  coupling fixed      extension -> coupling
  gripper  prismatic  coupling  -> gripper    0 .. 100 mm
"""
from __future__ import annotations

from typing import Optional

from kinematics import Extent, Joint, KinematicsChain, Link, anchor, mount
from kinematics.kinematics_chain import Sender

WIDTH = 150.0


def default_chain(sender: Optional[Sender] = None) -> KinematicsChain:
    """Assemble the default arm. *sender* receives outgoing controller messages."""
    chain = KinematicsChain(sender=sender)
    w = WIDTH

    # First link is just a point in space so the chain can start with a joint.
    root = chain.add_link(Link())

    column = chain.add_link(Link(Extent(w, w, 2000.0)))
    chain.add_joint(Joint.revolute(
        "swing", root, column,
        mount(),
        anchor((0.0, 0.0, -column.extent_along_axis('z'))),
    ))

    arm = chain.add_link(Link(Extent(w, w, 700.0)))
    chain.add_joint(
        Joint.prismatic(
            "lift", column, arm,
            mount((0.0, -w / 2, column.extent_along_axis('z') - w / 2), (1.0, 0.0, 0.0)),
            anchor((0.0, 0.0, -arm.extent_along_axis('z'))),
        )
        .set_axis((0.0, -1.0, 0.0))
        .set_constraints(0.0, 1500.0)
    )

    lower_arm = chain.add_link(Link(Extent(w, w, 750.0)))
    chain.add_joint(
        Joint.revolute(
            "elbow", arm, lower_arm,
            mount((0.0, -w / 2, 750.0 / 2 - w / 2), (1.0, 0.0, 0.0)),
            anchor((0.0, w / 2, -750.0 / 2 + w / 2), (-1.0, 0.0, 0.0)),
        )
        .set_constraints(-144.0, 144.0)
    )

    extension = chain.add_link(Link(Extent(w, w, 300.0)))
    chain.add_joint(Joint.revolute(
        "wrist", lower_arm, extension,
        mount((0.0, -w / 2, 750.0 / 2 - w / 2), (1.0, 0.0, 0.0)),
        anchor((0.0, 0.0, -extension.extent_along_axis('z'))),
    ))

    coupling = chain.add_link(Link(Extent(w, w, 50.0)))
    chain.add_joint(Joint.fixed(
        "coupling", extension, coupling,
        mount((0.0, w / 2, 0.0), (1.0, 0.0, 0.0)),
        anchor((0.0, w / 2, 0.0), (1.0, 0.0, 0.0)),
    ))

    gripper = chain.add_link(Link(Extent(50.0, w, w - 25.0)))
    chain.add_joint(
        Joint.prismatic(
            "gripper", coupling, gripper,
            mount((0.0, -(w / 2 - 50.0 / 2), -50.0 / 2), (0.0, 0.0, -1.0)),
            anchor((0.0, 0.0, gripper.extent_along_axis('z'))),
        )
        .set_axis((0.0, 1.0, 0.0))
        .set_constraints(0.0, 100.0)
    )

    return chain


# ── Example Usage ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import json

    from kinematics import export

    chain = default_chain(sender=lambda message: print(f"-> {json.dumps(message)}"))

    print("=== Default Arm ===")
    print(f"Links: {len(chain.links)}  Joints: {len(chain.joints)}  State: {chain.state}")
    print(json.dumps(chain.limits(), indent=2))

    chain.move([45.0, 500.0, 30.0, 0.0, 50.0])
    chain.update([45.0, 500.0, 30.0, 0.0, 50.0])
    for link in chain.links:
        print(f"Link {link.name}: {chain.world_transform(link)}")

    print()
    print(export(chain))
