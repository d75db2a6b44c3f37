"""Kinematic tree handle.

``KinematicTree`` loads a robot description, cuts chains between any two of
its frames and resolves the transforms along them.

Example:
    >>> tree = KinematicTree.from_file("robot.urdf")
    >>> T = tree.transform("base_link", "tool0", {"shoulder": 0.3, "elbow": -1.2})
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from flax import struct
from jax import Array

from .chain import forward_kinematics, resolve_transform
from .core import Chain, TreeModel
from .errors import NoPathError, TreeParseError
from .io import ParameterRegistry, default_registry, load_urdf, parse_urdf
from .joint_values import Scalar

logger = logging.getLogger(__name__)


@struct.dataclass
class KinematicTree:
    """A loaded kinematic tree.

    Frames are named after the links of the robot description. The handle is
    immutable and can be shared freely, including as an argument to jitted
    functions.
    """
    model: TreeModel

    # Constructors
    @classmethod
    def from_string(cls, urdf: str) -> "KinematicTree":
        """Build a tree from URDF text.

        Raises:
            TreeParseError: if the text is not a valid kinematic tree.
        """
        return cls(parse_urdf(urdf))

    @classmethod
    def from_parameter(cls, name: str,
                       registry: Optional[ParameterRegistry] = None) -> "KinematicTree":
        """Build a tree from the robot description stored under ``name``.

        Args:
            name: Parameter name, for example ``robot_description``
            registry: Where to look the name up. Defaults to
                      ``jax_kintree.io.default_registry``.

        Raises:
            TreeParseError: if the parameter is not set or can not be parsed.
        """
        registry = default_registry if registry is None else registry
        urdf = registry.get(name)
        if urdf is None:
            raise TreeParseError(f"Parameter '{name}' is not set")
        logger.debug("Loading robot description from parameter '%s'", name)
        return cls.from_string(urdf)

    @classmethod
    def from_file(cls, path: str) -> "KinematicTree":
        """Build a tree from a URDF file.

        Raises:
            OSError: if the file can not be read.
            TreeParseError: if the file is not a valid kinematic tree.
        """
        return cls(load_urdf(path))

    # Queries
    @property
    def root(self) -> str:
        return self.model.root

    @property
    def link_names(self) -> Tuple[str, ...]:
        return self.model.link_names

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return self.model.joint_names

    def has_frame(self, name: str) -> bool:
        return self.model.link_index(name) is not None

    def _index(self, frame: str) -> int:
        index = self.model.link_index(frame)
        if index is None:
            raise NoPathError(f"Frame '{frame}' does not exist in the tree", frame=frame)
        return index

    def get_chain(self, start: str, end: str) -> Chain:
        """Get the chain of segments leading from ``start`` to ``end``.

        The path climbs from ``start`` to the lowest common ancestor of both
        frames, walking those segments in reverse, then descends to ``end``.

        Raises:
            NoPathError: if either frame is not part of the tree.
        """
        up = self.model.ancestry(self._index(start))
        down = self.model.ancestry(self._index(end))

        down_set = set(down)
        common = next(i for i in up if i in down_set)

        segments = [self.model.segments[i].flipped() for i in up[:up.index(common)]]
        segments.extend(self.model.segments[i] for i in reversed(down[:down.index(common)]))

        logger.debug(
            "Chain %s -> %s via '%s': %d segments",
            start, end, self.model.link_names[common], len(segments),
        )
        return Chain(base=start, tip=end, segments=tuple(segments))

    def transform(self, source: str, target: str, joints: Any = None,
                  positions: Optional[Sequence[Scalar]] = None) -> Array:
        """Get the pose of frame ``target`` expressed in frame ``source``.

        Joint values are accepted in every form ``resolve_transform`` takes:
        nothing (all joints on the path must be fixed), a name -> position
        mapping, parallel name and position sequences, or a ``JointState``.

        Raises:
            NoPathError: if there is no chain between the frames.
            NonFixedJointError: if no joint values were given but a joint on
                the path is not fixed.
            JointNotFoundError: if a joint on the path has no value.
            MalformedJointDataError: if names and positions differ in length.
        """
        return resolve_transform(self.get_chain(source, target), joints, positions)

    def forward_kinematics(self, joints: Any = None,
                           positions: Optional[Sequence[Scalar]] = None) -> Dict[str, Array]:
        """Pose of every frame in the root frame."""
        return forward_kinematics(self.model, joints, positions)
