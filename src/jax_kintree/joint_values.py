"""Joint-value sources.

The resolver only ever asks one question of a joint-value source: "what is
the position of joint ``name``?". ``JointValues.lookup`` answers it with a
scalar or ``None``. Three adapters cover the accepted representations:

- ``MappingJointValues``: a name -> position mapping
- ``SequenceJointValues``: parallel name and position sequences
- ``JointStateValues``: a ``JointState`` record

``as_joint_values`` picks the right adapter for whatever the caller passed.
"""

import abc
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import jax

from .errors import MalformedJointDataError

Array = jax.Array
Scalar = Union[float, Array]


@dataclass(frozen=True)
class JointState:
    """Snapshot of joint positions as published by a robot driver.

    ``name`` and ``position`` are parallel: ``position[i]`` belongs to
    ``name[i]``. Velocity and effort are carried along but never read here.
    """
    name: Tuple[str, ...] = ()
    position: Tuple[float, ...] = ()
    velocity: Tuple[float, ...] = ()
    effort: Tuple[float, ...] = ()


class JointValues(abc.ABC):
    """Interface of a joint-value source."""

    @abc.abstractmethod
    def lookup(self, name: str) -> Optional[Scalar]:
        """Position of joint ``name``, or ``None`` if this source has none."""

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None


class MappingJointValues(JointValues):
    def __init__(self, positions: Mapping[str, Scalar]):
        self._positions = positions

    def lookup(self, name: str) -> Optional[Scalar]:
        return self._positions.get(name)


class SequenceJointValues(JointValues):
    """Joint positions given as parallel name and position sequences.

    Raises:
        MalformedJointDataError: if the sequences differ in length or a name
            appears more than once.
    """

    def __init__(self, names: Sequence[str], positions: Sequence[Scalar]):
        if len(names) != len(positions):
            raise MalformedJointDataError(
                f"Got {len(names)} joint names but {len(positions)} joint positions"
            )
        index: Dict[str, int] = {}
        for i, name in enumerate(names):
            if name in index:
                raise MalformedJointDataError(f"Joint '{name}' appears more than once")
            index[name] = i
        self._index = index
        self._positions = positions

    def lookup(self, name: str) -> Optional[Scalar]:
        i = self._index.get(name)
        if i is None:
            return None
        return self._positions[i]


class JointStateValues(SequenceJointValues):
    def __init__(self, state: JointState):
        super().__init__(state.name, state.position)


def as_joint_values(joints: Any, positions: Optional[Sequence[Scalar]] = None) -> JointValues:
    """Wrap ``joints`` (and ``positions``) in the matching adapter.

    Args:
        joints: A ``JointValues`` instance, a ``JointState``, a mapping from
                joint name to position, or a sequence of joint names when
                ``positions`` is given.
        positions: Joint positions parallel to ``joints``.

    Returns:
        A ``JointValues`` source.
    """
    if positions is not None:
        if isinstance(joints, (str, Mapping)):
            raise TypeError("joint names must be a sequence of strings when positions are given")
        return SequenceJointValues(joints, positions)
    if isinstance(joints, JointValues):
        return joints
    if isinstance(joints, JointState):
        return JointStateValues(joints)
    if isinstance(joints, Mapping):
        return MappingJointValues(joints)
    raise TypeError(f"Unsupported joint value source: {type(joints).__name__}")
