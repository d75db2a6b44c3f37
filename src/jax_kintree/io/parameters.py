"""Named robot descriptions.

A ``ParameterRegistry`` maps logical names such as ``robot_description`` to
URDF text. Names that were never registered fall back to an environment
variable derived from the name, so ``/robot_description`` is read from
``ROBOT_DESCRIPTION``. Values of the form ``file://<path>`` are read from
disk.
"""

import logging
import os
import re
from typing import Dict, Optional

logger = logging.getLogger(__name__)

FILE_PREFIX = "file://"


def env_var_name(name: str) -> str:
    """Environment variable consulted for parameter ``name``."""
    return re.sub(r"[^0-9A-Za-z]+", "_", name).strip("_").upper()


class ParameterRegistry:
    """In-process store of robot descriptions, backed by the environment."""

    def __init__(self, parameters: Optional[Dict[str, str]] = None, use_env: bool = True):
        self._parameters: Dict[str, str] = dict(parameters or {})
        self.use_env = use_env

    def set(self, name: str, value: str) -> None:
        self._parameters[name] = value

    def _raw(self, name: str) -> Optional[str]:
        if name in self._parameters:
            return self._parameters[name]
        if self.use_env:
            return os.getenv(env_var_name(name))
        return None

    def __contains__(self, name: str) -> bool:
        return self._raw(name) is not None

    def get(self, name: str) -> Optional[str]:
        """Resolve parameter ``name`` to its text, or None if it is not set.

        Raises:
            OSError: if the value points to a file that can not be read.
        """
        value = self._raw(name)
        if value is None:
            return None
        if value.startswith(FILE_PREFIX):
            path = value[len(FILE_PREFIX):]
            logger.debug("Parameter '%s' refers to file %s", name, path)
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        return value


# Registry used when callers do not pass their own
default_registry = ParameterRegistry()
