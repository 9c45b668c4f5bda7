# src/nacsim_core/data_structures.py
# Required for forward references in type hints (e.g., 'CircuitParameters')
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, TYPE_CHECKING, Union

from . import constants

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .parameters import CircuitParameters


class NodeType(Enum):
    """Kind of a node in the circuit tree."""
    ROOT = "Root"
    DEVICE = "Device"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class CurrentDraw:
    """Load current of a device in amps, in alarm and in standby condition."""
    alarm: float = 0.0
    standby: float = 0.0


@dataclass
class DeviceNode:
    """
    One node of the circuit tree: the synthetic Root (the power source) or a device.

    Nodes do not hold references to each other. `parent_index` and
    `child_indices` are positions in the owning `CircuitTree` arena, so the
    parent link is a lookup relation only.
    """
    index: int
    node_type: NodeType
    name: str
    device_type: str
    current: CurrentDraw = field(default_factory=CurrentDraw)
    distance_from_parent: float = 0.0
    is_branch_device: bool = False
    sequence_number: int = 0
    parent_index: Optional[int] = None
    child_indices: List[int] = field(default_factory=list)
    # Identifier from the circuit definition file, if the node came from one.
    node_id: Optional[str] = None
    manufacturer: str = ""
    model: str = ""

    @property
    def is_root(self) -> bool:
        return self.node_type is NodeType.ROOT


NodeRef = Union[DeviceNode, int]


class CircuitTree:
    """
    Arena-allocated tree of devices fed from a single source.

    The tree owns every node; index 0 is always the Root. Children keep the
    order in which they were added. Devices are only ever appended, so a node's
    index never changes once assigned.
    """

    ROOT_INDEX = 0

    def __init__(self, name: str = "Circuit", root_name: str = constants.ROOT_NODE_NAME):
        self.name = name
        self._nodes: List[DeviceNode] = [
            DeviceNode(
                index=self.ROOT_INDEX,
                node_type=NodeType.ROOT,
                name=root_name,
                device_type=constants.ROOT_DEVICE_TYPE,
            )
        ]
        self._by_id: Dict[str, int] = {}

    # --- Construction ---

    def add_device(
        self,
        parent: NodeRef,
        name: Optional[str] = None,
        device_type: Optional[str] = None,
        alarm_current: float = 0.0,
        standby_current: float = 0.0,
        distance_from_parent: float = 0.0,
        is_branch_device: bool = False,
        node_id: Optional[str] = None,
        manufacturer: str = "",
        model: str = "",
    ) -> DeviceNode:
        """
        Appends a device under `parent` and returns it.

        A missing name falls back to 'Device <sequence number>', a missing type
        to the generic device type.
        """
        parent_node = self.node(parent)
        index = len(self._nodes)
        sequence_number = index  # the Root holds index 0, devices are numbered from 1
        if node_id is not None and node_id in self._by_id:
            raise ValueError(f"Duplicate device id '{node_id}' in circuit '{self.name}'.")

        node = DeviceNode(
            index=index,
            node_type=NodeType.DEVICE,
            name=name if name else f"Device {sequence_number}",
            device_type=device_type if device_type else constants.DEFAULT_DEVICE_TYPE,
            current=CurrentDraw(alarm=float(alarm_current), standby=float(standby_current)),
            distance_from_parent=float(distance_from_parent),
            is_branch_device=bool(is_branch_device),
            sequence_number=sequence_number,
            parent_index=parent_node.index,
            node_id=node_id,
            manufacturer=manufacturer,
            model=model,
        )
        self._nodes.append(node)
        parent_node.child_indices.append(index)
        if node_id is not None:
            self._by_id[node_id] = index
        logger.debug(f"Added device '{node.name}' (#{sequence_number}) under '{parent_node.name}'.")
        return node

    # --- Lookups ---

    @property
    def root(self) -> DeviceNode:
        return self._nodes[self.ROOT_INDEX]

    @property
    def device_count(self) -> int:
        return len(self._nodes) - 1

    def __len__(self) -> int:
        return self.device_count

    def node(self, ref: NodeRef) -> DeviceNode:
        """Resolves a node or a node index to the node owned by this tree."""
        index = ref.index if isinstance(ref, DeviceNode) else ref
        if not 0 <= index < len(self._nodes):
            raise IndexError(f"Node index {index} is out of range for circuit '{self.name}'.")
        return self._nodes[index]

    def parent(self, ref: NodeRef) -> Optional[DeviceNode]:
        node = self.node(ref)
        return None if node.parent_index is None else self._nodes[node.parent_index]

    def children(self, ref: NodeRef) -> List[DeviceNode]:
        return [self._nodes[i] for i in self.node(ref).child_indices]

    def branch_children(self, ref: NodeRef) -> List[DeviceNode]:
        """Children that start a T-tap, in child-list order."""
        return [c for c in self.children(ref) if c.is_branch_device]

    def main_children(self, ref: NodeRef) -> List[DeviceNode]:
        """Children continuing the run. A well-formed device has at most one."""
        return [c for c in self.children(ref) if not c.is_branch_device]

    def main_child(self, ref: NodeRef) -> Optional[DeviceNode]:
        mains = self.main_children(ref)
        return mains[0] if mains else None

    def find_by_id(self, node_id: str) -> Optional[DeviceNode]:
        index = self._by_id.get(node_id)
        return None if index is None else self._nodes[index]

    def find_by_name(self, name: str) -> Optional[DeviceNode]:
        for node in self._nodes:
            if node.name == name:
                return node
        return None

    def iter_devices(self) -> Iterator[DeviceNode]:
        """Yields every device (not the Root) in construction order."""
        return iter(self._nodes[1:])

    def path_to_root(self, ref: NodeRef) -> List[DeviceNode]:
        """Nodes from the Root down to `ref`, inclusive."""
        path: List[DeviceNode] = []
        current: Optional[DeviceNode] = self.node(ref)
        while current is not None:
            path.append(current)
            current = self.parent(current)
        path.reverse()
        return path

    def path_label(self, ref: NodeRef) -> str:
        return constants.LOCATION_SEPARATOR.join(n.name for n in self.path_to_root(ref))

    def depth(self, ref: NodeRef) -> int:
        return len(self.path_to_root(ref)) - 1

    def leaves(self) -> List[DeviceNode]:
        return [n for n in self.iter_devices() if not n.child_indices]


@dataclass(frozen=True)
class Circuit:
    """
    A fully built circuit ready for evaluation: the device tree, the parameter
    set it is evaluated against, and where it came from.
    """
    name: str
    tree: CircuitTree
    parameters: CircuitParameters
    source_file_path: Optional[Path] = None
    project_name: Optional[str] = None
    project_path: Optional[str] = None
