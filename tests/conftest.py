import pytest

from axis_math import Transform
from kinematics import Extent, Joint, KinematicsChain, Link


@pytest.fixture
def sent():
    """Records every message a chain or session sends outward."""
    return []


@pytest.fixture
def small_chain(sent):
    """Root → swing (revolute, Z) → column → slide (prismatic, Z) → carriage."""
    chain = KinematicsChain(sender=sent.append)
    root = chain.add_link(Link())
    column = chain.add_link(Link(Extent(100.0, 100.0, 500.0)))
    carriage = chain.add_link(Link(Extent(50.0, 50.0, 50.0)))
    chain.add_joint(Joint.revolute("swing", root, column,
                                   pivot=Transform(position=(0.0, 0.0, 250.0))))
    chain.add_joint(
        Joint.prismatic("slide", column, carriage,
                        mount=Transform(position=(0.0, 0.0, 250.0)))
        .set_constraints(0.0, 400.0)
    )
    return chain
