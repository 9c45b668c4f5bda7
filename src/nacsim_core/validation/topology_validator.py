# src/nacsim_core/validation/topology_validator.py
import logging
from typing import List

from ..data_structures import CircuitTree, DeviceNode
from .issues import ValidationIssue, ValidationIssueLevel
from .issue_codes import CircuitIssueCode
from .exceptions import TopologyValidationError

logger = logging.getLogger(__name__)


class TopologyValidator:
    """
    Checks a built device tree for structural errors and suspicious values.

    Structural errors (a device with several main continuations) make the tree
    unusable for evaluation. Negative distances or currents are accepted as
    given and only reported as warnings; a device that draws no alarm current is
    reported for information.
    """

    def __init__(self, tree: CircuitTree):
        if not isinstance(tree, CircuitTree):
            raise TypeError("TopologyValidator requires a CircuitTree.")
        self.tree = tree
        self.issues: List[ValidationIssue] = []

    def validate(self) -> List[ValidationIssue]:
        """Runs every check and returns all issues found (errors, warnings and info)."""
        self.issues = []
        logger.debug(f"Validating topology of '{self.tree.name}' ({self.tree.device_count} devices)...")
        self._check_main_continuations()
        for node in self.tree.iter_devices():
            self._check_device_values(node)

        if self.issues:
            errors = sum(1 for i in self.issues if i.level == ValidationIssueLevel.ERROR)
            warnings = sum(1 for i in self.issues if i.level == ValidationIssueLevel.WARNING)
            infos = sum(1 for i in self.issues if i.level == ValidationIssueLevel.INFO)
            logger.info(f"Topology validation of '{self.tree.name}': {errors} errors, {warnings} warnings, {infos} info messages.")
        return self.issues

    def raise_for_errors(self) -> List[ValidationIssue]:
        """Validates and raises `TopologyValidationError` if any ERROR issue was found."""
        issues = self.validate()
        for issue in issues:
            if issue.level is ValidationIssueLevel.WARNING:
                logger.warning(str(issue))
        if any(issue.is_error for issue in issues):
            raise TopologyValidationError(issues, self.tree.name)
        return issues

    def structure_issues(self) -> List[ValidationIssue]:
        """Runs only the structural checks and returns their issues."""
        self.issues = []
        self._check_main_continuations()
        return self.issues

    def _add_issue(self, code_enum: CircuitIssueCode, node: DeviceNode, **kwargs):
        kwargs.setdefault('device', node.name)
        self.issues.append(ValidationIssue(
            level=code_enum.level,
            code=code_enum.code,
            message=code_enum.format_message(**kwargs),
            device_name=node.name,
            path_label=self.tree.path_label(node),
            details=kwargs,
        ))

    def _check_main_continuations(self):
        # The Root may feed several runs; only devices are limited to one main child.
        for node in self.tree.iter_devices():
            mains = self.tree.main_children(node)
            if len(mains) > 1:
                self._add_issue(
                    CircuitIssueCode.TOPO_MULTI_MAIN, node,
                    count=len(mains), children=", ".join(f"'{c.name}'" for c in mains),
                )

    def _check_device_values(self, node: DeviceNode):
        if node.distance_from_parent < 0:
            self._add_issue(CircuitIssueCode.DEV_NEG_DISTANCE, node, distance=node.distance_from_parent)
        if node.current.alarm < 0:
            self._add_issue(CircuitIssueCode.DEV_NEG_CURRENT, node, condition="alarm", current=node.current.alarm)
        if node.current.standby < 0:
            self._add_issue(CircuitIssueCode.DEV_NEG_CURRENT, node, condition="standby", current=node.current.standby)
        if node.current.alarm == 0:
            self._add_issue(CircuitIssueCode.DEV_ZERO_CURRENT, node)


def check_tree_structure(tree: CircuitTree) -> None:
    """
    Raises `TopologyValidationError` if any device of `tree` has more than one
    main continuation. Value warnings are not collected here.
    """
    issues = TopologyValidator(tree).structure_issues()
    if issues:
        raise TopologyValidationError(issues, tree.name)
