"""
Scenario Loader for the Banker's Scheduler Simulator.

Loads and validates resource and process descriptors.

Two formats are supported:
- Text descriptors: a resource file ("R1: a, b, c" per line) and a
  process file ("process_N" headers followed by instructions)
- JSON scenarios holding both resources and processes
"""

import json
import re
from typing import Dict, Iterable, List, Optional, Tuple

from models.instruction import Instruction, InstructionKind, InstructionParseError, parse_instruction
from models.process import ProcessDescriptor
from models.resource import ResourceCatalog, ResourceType
from utils.config import SimulationConfig


class LoadError(Exception):
    """Exception raised when a descriptor source cannot be loaded or is invalid."""
    pass


_HEADER_RE = re.compile(r"^process_\w*:?(?P<rest>.*)$")
_ATTRIBUTE_RE = re.compile(r"^(?P<key>deadline|computation_time)\s*[:=]\s*(?P<value>-?\d+)$")
_INLINE_ATTRIBUTE_RE = re.compile(r"(?P<key>deadline|computation_time)\s*=\s*(?P<value>-?\d+)")


def _read_lines(file_path: str) -> List[str]:
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except FileNotFoundError as e:
        raise LoadError(f"Descriptor file not found: {file_path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Cannot read descriptor file {file_path}: {e}") from e


def load_resource_catalog(file_path: str) -> ResourceCatalog:
    """
    Load resource types from a text descriptor.

    Each non-blank line declares one type: "<name>: <instance>, <instance>, ..."
    Lines starting with '#' are comments.

    Raises:
        LoadError: If the file cannot be read or a line is malformed
    """
    return parse_resource_lines(_read_lines(file_path))


def parse_resource_lines(lines: Iterable[str]) -> ResourceCatalog:
    """Parse resource declarations into a catalog."""
    pairs = []

    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        if ':' not in line:
            raise LoadError(f"Line {number}: resource declaration missing ':' - '{line}'")

        name, _, instance_part = line.partition(':')
        name = name.strip()
        if not name:
            raise LoadError(f"Line {number}: resource declaration missing a name")

        instances = [i.strip() for i in instance_part.split(',')]
        if not instance_part.strip() or any(not i for i in instances):
            raise LoadError(f"Line {number}: resource {name} has an empty instance identifier")

        pairs.append((name, instances))

    return _build_catalog(pairs)


def _build_catalog(pairs: List[Tuple[str, List[str]]]) -> ResourceCatalog:
    if not pairs:
        raise LoadError("No resource types declared")
    try:
        return ResourceCatalog(ResourceType(name, tuple(instances)) for name, instances in pairs)
    except ValueError as e:
        raise LoadError(str(e)) from e


def load_processes(
    file_path: str,
    catalog: ResourceCatalog,
    config: Optional[SimulationConfig] = None
) -> List[ProcessDescriptor]:
    """
    Load processes from a text descriptor.

    Format:
        process_1 deadline=10 computation_time=3
        request(2, 1)
        compute(3)
        end
        process_2
        deadline: 5
        ...

    Process ids are assigned 1, 2, ... in declaration order, whatever the
    header says. Missing deadline/computation time fall back to the
    config defaults.

    Raises:
        LoadError: If the file cannot be read or holds an invalid process
    """
    return parse_process_lines(_read_lines(file_path), catalog, config)


def parse_process_lines(
    lines: Iterable[str],
    catalog: ResourceCatalog,
    config: Optional[SimulationConfig] = None
) -> List[ProcessDescriptor]:
    """Parse process declarations into descriptors."""
    config = config or SimulationConfig()
    blocks: List[Dict] = []

    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        header = _HEADER_RE.match(line)
        if header:
            block = {'attributes': {}, 'instructions': []}
            for match in _INLINE_ATTRIBUTE_RE.finditer(header.group('rest')):
                block['attributes'][match.group('key')] = int(match.group('value'))
            blocks.append(block)
            continue

        if not blocks:
            raise LoadError(f"Line {number}: instruction before any process header - '{line}'")

        attribute = _ATTRIBUTE_RE.match(line)
        if attribute:
            blocks[-1]['attributes'][attribute.group('key')] = int(attribute.group('value'))
            continue

        try:
            blocks[-1]['instructions'].append(parse_instruction(line))
        except InstructionParseError as e:
            raise LoadError(f"Line {number}: {e}") from e

    return [
        _build_process(pid, block['attributes'], block['instructions'], catalog, config)
        for pid, block in enumerate(blocks, start=1)
    ]


def _build_process(
    pid: int,
    attributes: Dict[str, int],
    instructions: List[Instruction],
    catalog: ResourceCatalog,
    config: SimulationConfig
) -> ProcessDescriptor:
    _validate_instructions(pid, instructions, catalog)

    deadline = attributes.get('deadline', config.default_deadline)
    computation_time = attributes.get('computation_time', config.default_computation_time)

    try:
        return ProcessDescriptor(
            pid=pid,
            deadline=deadline,
            computation_time=computation_time,
            instructions=tuple(instructions),
        )
    except ValueError as e:
        raise LoadError(str(e)) from e


def _validate_instructions(pid: int, instructions: List[Instruction], catalog: ResourceCatalog) -> None:
    """
    Validate a process's instructions against the catalog.

    Raises:
        LoadError: If a request/release vector has the wrong length or a
            reference names an unknown instance
    """
    for instruction in instructions:
        if instruction.kind in (InstructionKind.REQUEST, InstructionKind.RELEASE):
            if len(instruction.args) != catalog.num_resources:
                raise LoadError(
                    f"Process {pid}: '{instruction.text}' has {len(instruction.args)} amounts, "
                    f"expected {catalog.num_resources} (one per resource type)"
                )
        elif instruction.kind == InstructionKind.REFERENCE:
            if not catalog.has_instance(instruction.reference):
                raise LoadError(
                    f"Process {pid}: '{instruction.reference}' is neither a directive "
                    f"nor a known resource instance"
                )


def load_scenario(
    file_path: str,
    config: Optional[SimulationConfig] = None
) -> Tuple[ResourceCatalog, List[ProcessDescriptor]]:
    """
    Load scenario from JSON file.

    Expected layout:
        {
          "description": "...",
          "resources": [{"name": "R1", "instances": ["a", "b"]}, ...],
          "processes": [{"deadline": 5, "computation_time": 2,
                         "instructions": ["request(1)", "compute(2)", "end"]}, ...]
        }

    Returns:
        Tuple of (ResourceCatalog, process descriptors)

    Raises:
        LoadError: If file cannot be loaded or is invalid
    """
    config = config or SimulationConfig()

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise LoadError(f"Scenario file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in scenario file: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Cannot read scenario file {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise LoadError("Scenario must be a JSON object")

    # Validate required fields
    if 'resources' not in data:
        raise LoadError("Scenario missing 'resources' field")
    if 'processes' not in data:
        raise LoadError("Scenario missing 'processes' field")
    if not isinstance(data['resources'], list):
        raise LoadError("Scenario 'resources' must be a list")
    if not isinstance(data['processes'], list):
        raise LoadError("Scenario 'processes' must be a list")

    catalog = _load_resources(data['resources'])

    processes = []
    for pid, proc_data in enumerate(data['processes'], start=1):
        processes.append(_load_process(pid, proc_data, catalog, config))

    return catalog, processes


def _load_resources(resource_data: List[Dict]) -> ResourceCatalog:
    """Load resource definitions from scenario data."""
    pairs = []
    for res in resource_data:
        if not isinstance(res, dict):
            raise LoadError(f"Resource entry must be an object, got {res!r}")
        if 'name' not in res:
            raise LoadError("Resource missing 'name' field")
        if 'instances' not in res:
            raise LoadError(f"Resource {res['name']} missing 'instances'")
        if not isinstance(res['instances'], list) or not res['instances']:
            raise LoadError(f"Resource {res['name']}: 'instances' must be a non-empty list")
        pairs.append((str(res['name']), [str(i) for i in res['instances']]))
    return _build_catalog(pairs)


def _load_process(
    pid: int,
    proc_data: Dict,
    catalog: ResourceCatalog,
    config: SimulationConfig
) -> ProcessDescriptor:
    """Load a single process from scenario data."""
    if not isinstance(proc_data, dict):
        raise LoadError(f"Process {pid}: entry must be an object, got {proc_data!r}")
    if 'instructions' not in proc_data:
        raise LoadError(f"Process {pid} missing required field: instructions")

    attributes = {}
    for key in ('deadline', 'computation_time'):
        if key in proc_data:
            if not isinstance(proc_data[key], int):
                raise LoadError(f"Process {pid}: '{key}' must be an integer")
            attributes[key] = proc_data[key]

    if not isinstance(proc_data['instructions'], list):
        raise LoadError(f"Process {pid}: 'instructions' must be a list")

    instructions = []
    for line in proc_data['instructions']:
        if not str(line).strip():
            continue
        try:
            instructions.append(parse_instruction(str(line)))
        except InstructionParseError as e:
            raise LoadError(f"Process {pid}: {e}") from e

    return _build_process(pid, attributes, instructions, catalog, config)


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')
