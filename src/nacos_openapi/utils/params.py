"""Request Parameter Utilities

Helpers for rendering Python values into Nacos query/form parameters and for
handling the ``group@@service`` naming convention.
"""

import json
from enum import Enum
from typing import Dict, Any, Optional, Tuple

from ..constants import GROUP_SERVICE_NAME_SEPARATOR, DEFAULT_GROUP_NAME


def render_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Render a parameter mapping into the strings Nacos expects.

    Args:
        params: Raw parameters. Example:
            {"serviceName": "orders", "healthyOnly": True, "port": None,
             "metadata": {"zone": "a"}}

    Returns:
        Mapping without ``None`` values, booleans as ``true``/``false``,
        dicts and lists as compact JSON and everything else via ``str``.
        Example: {"serviceName": "orders", "healthyOnly": "true",
                  "metadata": '{"zone":"a"}'}
    """
    if not params:
        return {}

    rendered = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            rendered[name] = "true" if value else "false"
        elif isinstance(value, Enum):
            rendered[name] = str(value.value)
        elif isinstance(value, (dict, list, tuple)):
            rendered[name] = json.dumps(value, separators=(",", ":"))
        else:
            rendered[name] = str(value)
    return rendered


def join_group_service(group_name: Optional[str], service_name: str) -> str:
    """Build the grouped service name used on the wire (``group@@service``)."""
    return f"{group_name or DEFAULT_GROUP_NAME}{GROUP_SERVICE_NAME_SEPARATOR}{service_name}"


def split_group_service(name: str) -> Tuple[Optional[str], str]:
    """Split ``group@@service`` into ``(group, service)``.

    A name without the separator yields ``(None, name)``.
    """
    if GROUP_SERVICE_NAME_SEPARATOR in name:
        group_name, service_name = name.split(GROUP_SERVICE_NAME_SEPARATOR, 1)
        return group_name, service_name
    return None, name
