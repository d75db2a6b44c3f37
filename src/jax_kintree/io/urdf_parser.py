"""URDF parser for loading kinematic trees.

Only the kinematic part of URDF is read: links, joints, their parent/child
relationships, origins, axes and mimic tags. Everything else (inertia,
geometry, transmissions, plugin blocks) is ignored.
"""

import logging
from collections import deque
from typing import Dict, List, Optional, Union

import jax.numpy as jnp
import numpy as np
from lxml import etree

from jax_kintree.core import JointType, Segment, TreeModel
from jax_kintree.errors import TreeParseError
from jax_kintree.transforms import se3

logger = logging.getLogger(__name__)

# URDF joint types without a single scalar position are loaded as fixed
_FIXED_FALLBACK_TYPES = ("floating", "planar")


def load_urdf(urdf_path: str) -> TreeModel:
    """Load a URDF file and convert it to a TreeModel.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        TreeModel: the parsed kinematic tree.

    Raises:
        OSError: if the file can not be read.
        TreeParseError: if the contents are not a valid kinematic tree.
    """
    with open(urdf_path, "rb") as f:
        data = f.read()
    logger.debug("Read robot description from %s", urdf_path)
    return parse_urdf(data)


def parse_urdf(urdf: Union[str, bytes]) -> TreeModel:
    """Parse URDF text into a TreeModel.

    Args:
        urdf: The robot description. Bytes are decoded as their XML
              declaration says; text is taken as already decoded.

    Returns:
        TreeModel: the parsed kinematic tree.
    """
    parser = None
    if isinstance(urdf, str):
        # the text is re-encoded as UTF-8, so any declared encoding no longer applies
        urdf = urdf.encode("utf-8")
        parser = etree.XMLParser(encoding="utf-8")
    try:
        root = etree.fromstring(urdf, parser)
    except etree.XMLSyntaxError as e:
        raise TreeParseError(f"Invalid robot description: {e}") from e

    if root.tag != "robot":
        raise TreeParseError(f"Expected <robot> root element, found <{root.tag}>")

    # First pass: collect links and joints
    all_links: List[str] = []
    for link in root.findall("link"):
        link_name = link.get("name")
        if not link_name:
            raise TreeParseError("Found a <link> without a name")
        if link_name in all_links:
            raise TreeParseError(f"Duplicate link '{link_name}'")
        all_links.append(link_name)

    if not all_links:
        raise TreeParseError("Robot description contains no links")

    joint_by_child: Dict[str, Segment] = {}
    children: Dict[str, List[str]] = {}
    joint_names = set()

    for joint in root.findall("joint"):
        segment = _parse_joint(joint)
        if segment.joint_name in joint_names:
            raise TreeParseError(f"Duplicate joint '{segment.joint_name}'")
        joint_names.add(segment.joint_name)

        for link_name in (segment.parent, segment.name):
            if link_name not in all_links:
                raise TreeParseError(
                    f"Joint '{segment.joint_name}' references unknown link '{link_name}'"
                )
        if segment.name in joint_by_child:
            raise TreeParseError(
                f"Link '{segment.name}' has more than one parent joint: "
                f"'{joint_by_child[segment.name].joint_name}' and '{segment.joint_name}'"
            )
        joint_by_child[segment.name] = segment
        children.setdefault(segment.parent, []).append(segment.name)

    # Find root link (not a child of any joint)
    root_links = [name for name in all_links if name not in joint_by_child]
    if len(root_links) != 1:
        raise TreeParseError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links[0]

    # Order links using breadth-first traversal from root
    ordered_links: List[str] = []
    queue = deque([root_link])
    while queue:
        current_link = queue.popleft()
        ordered_links.append(current_link)
        queue.extend(children.get(current_link, ()))

    if len(ordered_links) != len(all_links):
        unreachable = sorted(set(all_links) - set(ordered_links))
        raise TreeParseError(f"Links are not reachable from root '{root_link}': {unreachable}")

    link_map = {name: i for i, name in enumerate(ordered_links)}

    # Second pass: populate the arena
    parent_indices = [0]
    segments = [Segment(
        name=root_link,
        parent="",
        joint_name="",
        joint_type=JointType.FIXED,
        origin=se3.identity(),
        axis=jnp.zeros(6),
    )]
    for link_name in ordered_links[1:]:
        segment = joint_by_child[link_name]
        parent_indices.append(link_map[segment.parent])
        segments.append(segment)

    actuated_joint_names = tuple(s.joint_name for s in segments if not s.is_fixed)

    for segment in segments:
        if segment.mimic_joint is not None and segment.mimic_joint not in joint_names:
            raise TreeParseError(
                f"Joint '{segment.joint_name}' mimics unknown joint '{segment.mimic_joint}'"
            )

    logger.debug(
        "Loaded robot '%s': %d links, %d actuated joints, root '%s'",
        root.get("name", ""), len(ordered_links), len(actuated_joint_names), root_link,
    )

    return TreeModel(
        link_names=tuple(ordered_links),
        joint_names=actuated_joint_names,
        parent_indices=tuple(parent_indices),
        segments=tuple(segments),
    )


def _parse_joint(joint) -> Segment:
    """Build the segment described by a <joint> element."""
    joint_name = joint.get("name")
    if not joint_name:
        raise TreeParseError("Found a <joint> without a name")

    type_name = joint.get("type")
    if type_name in _FIXED_FALLBACK_TYPES:
        logger.warning("Joint '%s' has type '%s', treating it as fixed", joint_name, type_name)
        joint_type = JointType.FIXED
    else:
        try:
            joint_type = JointType(type_name)
        except ValueError:
            raise TreeParseError(f"Joint '{joint_name}' has unknown type '{type_name}'") from None

    parent_name = _link_reference(joint, "parent", joint_name)
    child_name = _link_reference(joint, "child", joint_name)

    # Parse origin transform
    origin_elem = joint.find("origin")
    if origin_elem is not None:
        xyz = _parse_vector(origin_elem, "xyz", "0 0 0", joint_name)
        rpy = _parse_vector(origin_elem, "rpy", "0 0 0", joint_name)
        origin = se3.from_xyz_rpy(jnp.array(xyz), jnp.array(rpy))
    else:
        origin = se3.identity()

    # Parse joint axis
    if joint_type.is_fixed:
        axis = jnp.zeros(6)
    else:
        axis_elem = joint.find("axis")
        if axis_elem is not None:
            axis_xyz = _parse_vector(axis_elem, "xyz", "1 0 0", joint_name)
        else:
            axis_xyz = np.array([1.0, 0.0, 0.0])  # URDF default X axis
        norm = np.linalg.norm(axis_xyz)
        if norm < 1e-12:
            raise TreeParseError(f"Joint '{joint_name}' has a zero-length axis")
        axis_xyz = axis_xyz / norm

        if joint_type.is_rotational:
            # Revolute: [0, 0, 0, wx, wy, wz]
            axis = jnp.concatenate([jnp.zeros(3), jnp.array(axis_xyz)])
        else:
            # Prismatic: [vx, vy, vz, 0, 0, 0]
            axis = jnp.concatenate([jnp.array(axis_xyz), jnp.zeros(3)])

    mimic_joint: Optional[str] = None
    multiplier, offset = 1.0, 0.0
    mimic_elem = joint.find("mimic")
    if mimic_elem is not None and not joint_type.is_fixed:
        mimic_joint = mimic_elem.get("joint")
        if not mimic_joint:
            raise TreeParseError(f"Joint '{joint_name}' has a <mimic> without a joint")
        multiplier = _parse_float(mimic_elem, "multiplier", 1.0, joint_name)
        offset = _parse_float(mimic_elem, "offset", 0.0, joint_name)

    return Segment(
        name=child_name,
        parent=parent_name,
        joint_name=joint_name,
        joint_type=joint_type,
        origin=origin,
        axis=axis,
        mimic_joint=mimic_joint,
        mimic_multiplier=multiplier,
        mimic_offset=offset,
    )


def _link_reference(joint, tag: str, joint_name: str) -> str:
    elem = joint.find(tag)
    link_name = elem.get("link") if elem is not None else None
    if not link_name:
        raise TreeParseError(f"Joint '{joint_name}' has no <{tag} link=...>")
    return link_name


def _parse_vector(elem, attr: str, default: str, joint_name: str) -> np.ndarray:
    text = elem.get(attr, default)
    try:
        values = np.array([float(x) for x in text.split()])
    except ValueError:
        raise TreeParseError(f"Joint '{joint_name}': invalid {attr}=\"{text}\"") from None
    if values.shape != (3,):
        raise TreeParseError(f"Joint '{joint_name}': {attr} needs 3 values, got \"{text}\"")
    return values


def _parse_float(elem, attr: str, default: float, joint_name: str) -> float:
    text = elem.get(attr)
    if text is None:
        return default
    try:
        return float(text)
    except ValueError:
        raise TreeParseError(f"Joint '{joint_name}': invalid {attr}=\"{text}\"") from None
