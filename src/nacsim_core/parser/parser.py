# src/nacsim_core/parser/parser.py
import logging
import re
import string
from pathlib import Path
from typing import Any, Dict, List, Union

import cerberus
import yaml

from ..attributes import KNOWN_ATTRIBUTES
from ..parameters.parameters import PARAMETER_KINDS
from .raw_data import ParsedCircuitFile, ParsedDeviceData
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

# Device ids may use letters, digits, underscores and hyphens ('NAC1-D07').
ID_REGEX = r"^[a-zA-Z0-9_][a-zA-Z0-9_\-]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_-")


class EnhancedValidator(cerberus.Validator):
    """Cerberus validator with the identifier and uniqueness rules of circuit files."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['id_regex'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_id_regex(self, constraint: bool, field: str, value: Any):
        if not constraint or value is None: return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return

        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(set(value) - ALLOWED_ID_CHARS)
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers may only contain letters, numbers, "
                f"underscores and hyphens, and must not start with a hyphen. Forbidden character(s): {invalid_chars}",
            )

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = set()
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is None:
                continue
            if item_key in seen_keys:
                duplicates.add(item_key)
            seen_keys.add(item_key)

        if duplicates:
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {sorted(duplicates)}")


class CircuitFileParser:
    """
    Parses and schema-checks a circuit definition YAML file.

    Its only job is to produce the `ParsedCircuitFile` IR; interpreting values
    and assembling the device tree is left to the `CircuitBuilder`.
    """
    _id_rule = {"type": "string", "required": True, "empty": False, "id_regex": True}
    _raw_value_rule = {"type": ["string", "number"]}

    _device_schema = {
        "id": _id_rule,
        "parent": {"type": "string", "required": False, "nullable": True, "empty": False, "id_regex": True},
        "branch": {"type": "boolean", "required": False, "default": False},
        "distance": {"type": ["string", "number"], "required": False, "default": 0},
        "attributes": {
            "type": "dict",
            "required": False,
            "default": {},
            "keysrules": {"type": "string", "allowed": list(KNOWN_ATTRIBUTES)},
            "valuesrules": {"type": ["string", "number"], "nullable": True},
        },
    }

    _schema = {
        "circuit_name": {"type": "string", "required": False, "empty": False},
        "project": {
            "type": "dict",
            "required": False,
            "schema": {
                "name": {"type": "string", "empty": False},
                "path": {"type": "string"},
            },
        },
        "parameters": {
            "type": "dict",
            "required": False,
            "schema": dict(
                dict.fromkeys(PARAMETER_KINDS, _raw_value_rule),
                wire_gauge={"type": "string", "empty": False},
            ),
        },
        "devices": {
            "type": "list",
            "required": True,
            "unique_elements_by_key": "id",
            "schema": {"type": "dict", "schema": _device_schema},
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.debug("CircuitFileParser initialized with strict structural validation rules.")

    def parse_file(self, yaml_path: Union[str, Path]) -> ParsedCircuitFile:
        """Parses a circuit file from disk."""
        source = Path(yaml_path).resolve()
        logger.info(f"Parsing circuit file: {source}")
        return self._parse_content(self._load_yaml(source), source)

    def parse_string(self, text: str, source_name: str = "<string>") -> ParsedCircuitFile:
        """Parses circuit YAML held in memory; `source_name` is used in error reports."""
        source = Path(source_name)
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        return self._parse_content(self._check_root(content, source), source)

    def _parse_content(self, content: Dict[str, Any], source: Path) -> ParsedCircuitFile:
        if not self._validator.validate(content):
            raise SchemaValidationError(self._flatten_errors(self._validator.errors), source)
        document = self._validator.document

        devices = [
            ParsedDeviceData(
                device_id=entry["id"],
                parent_id=entry.get("parent"),
                is_branch=entry["branch"],
                raw_distance=entry["distance"],
                raw_attributes=dict(entry.get("attributes") or {}),
                file_order=order,
                source_yaml_path=source,
            )
            for order, entry in enumerate(document["devices"])
        ]
        project = document.get("project", {})
        parsed = ParsedCircuitFile(
            circuit_name=document.get("circuit_name", source.stem),
            source_yaml_path=source,
            devices=devices,
            raw_parameters_dict=document.get("parameters", {}),
            project_name=project.get("name"),
            project_path=project.get("path"),
        )
        logger.debug(f"Parsed {len(devices)} device entries from '{source}'.")
        return parsed

    @staticmethod
    def _flatten_errors(errors: Dict[Any, Any], prefix: str = "") -> Dict[str, Any]:
        """Turns cerberus' nested error tree into 'devices.2.id' -> [messages]."""
        flat: Dict[str, Any] = {}
        for key, value in errors.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            messages = value if isinstance(value, list) else [value]
            leaf_messages = []
            for message in messages:
                if isinstance(message, dict):
                    flat.update(CircuitFileParser._flatten_errors(message, path))
                else:
                    leaf_messages.append(message)
            if leaf_messages:
                flat[path] = leaf_messages
        return flat

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Circuit file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        return self._check_root(content, source)

    @staticmethod
    def _check_root(content: Any, source: Path) -> Dict[str, Any]:
        if content is None:
            raise ParsingError(details="The YAML file is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise ParsingError(details="The root of the YAML file must be a dictionary (mapping).", file_path=source)
        return content
