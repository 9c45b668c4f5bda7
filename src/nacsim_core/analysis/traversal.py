# src/nacsim_core/analysis/traversal.py
"""
The single depth-first walk over a circuit tree shared by every consumer.

The evaluator, the spreadsheet layout builders and the report projector all
need the same device order, the same 1-based positions, the same sheet rows and
the same location labels. They get them from `walk_circuit`, which hands each
node to an injected sink. A sink decides what to do with a visit (compute
values, emit formulas, collect records); the walk alone decides order.

Order rules:
    * Root's children are walked in child-list order.
    * A device is visited first, then each of its branch children (and their
      subtrees) in child-list order, then its main continuation.
    * Hence every device and its downstream devices occupy one contiguous
      block of positions (and rows), starting with the device itself.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from .. import constants
from ..data_structures import CircuitTree, DeviceNode
from ..validation import check_tree_structure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootVisit:
    node: DeviceNode
    # None when the walk does not allocate a row for the Root.
    row: Optional[int]


@dataclass(frozen=True)
class DeviceVisit:
    """Everything a sink may need to know about one device at the moment it is visited."""
    node: DeviceNode
    parent: DeviceNode
    position: int
    row: int
    parent_row: Optional[int]
    location: str
    depth: int
    # Rows taken by the device and everything downstream of it; in walk order
    # they form one contiguous block starting at `row`.
    subtree_size: int
    # True for the first child of the Root, whose segment runs from the source.
    is_supply_segment: bool


class CircuitSink(Protocol):
    def visit_root(self, visit: RootVisit) -> None:
        ...

    def visit_device(self, visit: DeviceVisit) -> None:
        ...


@dataclass
class WalkState:
    """
    Per-walk accumulator threaded through the recursion. A new one is created
    for every walk, so walks never share counters.
    """
    next_position: int = 1
    next_row: int = 1
    rows_by_node: Dict[int, int] = field(default_factory=dict)
    positions_by_node: Dict[int, int] = field(default_factory=dict)
    subtree_sizes: Dict[int, int] = field(default_factory=dict)
    order: List[int] = field(default_factory=list)

    def take_position(self) -> int:
        position = self.next_position
        self.next_position += 1
        return position

    def take_row(self) -> int:
        row = self.next_row
        self.next_row += 1
        return row


def subtree_sizes(tree: CircuitTree) -> Dict[int, int]:
    """
    Returns node index -> number of devices in the subtree rooted at that device,
    the device itself included. Post-order with an explicit stack.
    """
    sizes: Dict[int, int] = {}
    stack = [(child_index, False) for child_index in reversed(tree.root.child_indices)]
    while stack:
        index, children_done = stack.pop()
        node = tree.node(index)
        if children_done:
            sizes[index] = 1 + sum(sizes[c] for c in node.child_indices)
            continue
        stack.append((index, True))
        stack.extend((c, False) for c in reversed(node.child_indices))
    return sizes


def walk_circuit(
    tree: CircuitTree,
    sink: CircuitSink,
    first_row: int = 1,
    include_root_row: bool = False,
) -> WalkState:
    """
    Walks `tree` depth-first and reports every node to `sink`.

    Args:
        tree: The circuit to walk. Its structure is checked first.
        sink: Receives one `visit_root` call, then one `visit_device` per device.
        first_row: Row number given to the first emitted row.
        include_root_row: Whether the Root occupies a row of its own.

    Returns:
        The final `WalkState`, holding the row and position of every device.
    """
    check_tree_structure(tree)
    state = WalkState(next_row=first_row)
    root = tree.root
    root_row = state.take_row() if include_root_row else None
    if root_row is not None:
        state.rows_by_node[root.index] = root_row
    state.subtree_sizes = subtree_sizes(tree)
    sink.visit_root(RootVisit(node=root, row=root_row))

    first_child_index = root.child_indices[0] if root.child_indices else None
    for child in tree.children(root):
        _walk_run(
            tree, sink, state, child, root,
            prefix="", depth=1,
            is_supply_segment=child.index == first_child_index,
        )
    logger.debug(f"Walked {len(state.order)} devices of '{tree.name}'.")
    return state


def _walk_run(
    tree: CircuitTree,
    sink: CircuitSink,
    state: WalkState,
    node: DeviceNode,
    parent: DeviceNode,
    prefix: str,
    depth: int,
    is_supply_segment: bool = False,
):
    """
    Visits `node` and then follows its chain of main continuations. Only branch
    subtrees recurse, so recursion depth grows with T-tap nesting, not run length.
    """
    current: Optional[DeviceNode] = node
    while current is not None:
        position = state.take_position()
        row = state.take_row()
        state.positions_by_node[current.index] = position
        state.rows_by_node[current.index] = row
        state.order.append(current.index)

        suffix = constants.LOCATION_BRANCH if current.is_branch_device else constants.LOCATION_MAIN
        sink.visit_device(DeviceVisit(
            node=current,
            parent=parent,
            position=position,
            row=row,
            parent_row=state.rows_by_node.get(parent.index),
            location=f"{prefix}{suffix}",
            depth=depth,
            subtree_size=state.subtree_sizes[current.index],
            is_supply_segment=is_supply_segment,
        ))

        branch_prefix = f"{prefix}{current.name}{constants.LOCATION_SEPARATOR}"
        for branch in tree.branch_children(current):
            _walk_run(tree, sink, state, branch, current, branch_prefix, depth + 1)

        parent, current = current, tree.main_child(current)
        depth += 1
        is_supply_segment = False
