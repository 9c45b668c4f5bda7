# src/nacsim_core/attributes.py
import logging
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Attribute names read from a device definition.
ATTR_NAME = "Name"
ATTR_DEVICE_TYPE = "DeviceType"
ATTR_ALARM_CURRENT = "AlarmCurrent"
ATTR_STANDBY_CURRENT = "StandbyCurrent"
ATTR_MANUFACTURER = "Manufacturer"
ATTR_MODEL = "Model"

KNOWN_ATTRIBUTES = (
    ATTR_NAME,
    ATTR_DEVICE_TYPE,
    ATTR_ALARM_CURRENT,
    ATTR_STANDBY_CURRENT,
    ATTR_MANUFACTURER,
    ATTR_MODEL,
)


@runtime_checkable
class DeviceAttributeSource(Protocol):
    """
    Read access to the named string attributes of one device.

    Implementations return `default` when the attribute is absent or blank.
    The circuit builder only ever talks to this interface, so a device may be
    described by a YAML mapping, a CAD block reference or anything else that can
    answer `get`.
    """
    def get(self, attribute: str, default: str) -> str:
        ...


class MappingAttributeSource:
    """Attribute source backed by a plain mapping of attribute name to value."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = dict(values or {})

    def get(self, attribute: str, default: str) -> str:
        value = self._values.get(attribute)
        if value is None:
            return default
        text = str(value).strip()
        return text if text else default

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"
