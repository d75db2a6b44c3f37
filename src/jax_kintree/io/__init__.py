"""Loading kinematic trees from robot descriptions.

URDF text can come from a string, a file, or a named parameter.
"""

from .parameters import ParameterRegistry, default_registry
from .urdf_parser import load_urdf, parse_urdf

__all__ = ["load_urdf", "parse_urdf", "ParameterRegistry", "default_registry"]
