"""
Descriptor Loader Tests

Tests the instruction tokenizer and the text and JSON descriptor loaders.
"""

import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np
import pytest

from models.instruction import InstructionKind, InstructionParseError, parse_instruction
from utils.config import SimulationConfig
from utils.scenario_loader import (
    LoadError,
    get_scenario_description,
    load_processes,
    load_resource_catalog,
    load_scenario,
    parse_process_lines,
    parse_resource_lines,
)

SCENARIOS_DIR = project_root / "scenarios"
TEST_SCENARIOS_DIR = project_root / "tests" / "scenarios"


def test_parse_directives():
    """Each directive decodes to its tagged kind."""
    print("\n" + "="*60)
    print("TEST 1: Instruction Tokenizer")
    print("="*60)

    cases = {
        "compute(3)": (InstructionKind.COMPUTE, (3,)),
        "calculate(2)": (InstructionKind.COMPUTE, (2,)),
        "request(1, 0, 2)": (InstructionKind.REQUEST, (1, 0, 2)),
        "  release( 0,1 ) ": (InstructionKind.RELEASE, (0, 1)),
        "use_resources": (InstructionKind.USE_RESOURCES, ()),
        "print_resources_used": (InstructionKind.PRINT_RESOURCES_USED, ()),
        "end": (InstructionKind.END, ()),
        "end;": (InstructionKind.END, ()),
        "r1_a": (InstructionKind.REFERENCE, ()),
    }
    for line, (kind, args) in cases.items():
        instruction = parse_instruction(line)
        print(f"  {line!r:24} -> {instruction.kind.name} {instruction.args}")
        assert instruction.kind == kind
        assert instruction.args == args

    assert parse_instruction("compute(4)").duration == 4
    assert parse_instruction("r1_a").reference == "r1_a"
    print("  ✓ All directives decoded")


def test_keyword_prefixes_are_not_directives():
    """Substring matches like 'endpoint' or 'requester' are references, not directives."""
    assert parse_instruction("endpoint").kind == InstructionKind.REFERENCE
    assert parse_instruction("requester").kind == InstructionKind.REFERENCE


@pytest.mark.parametrize("line", [
    "compute()",
    "compute(1, 2)",
    "compute",
    "request",
    "request(1, -1)",
    "request(1, x)",
    "release(1,,2)",
    "end(1)",
    "launch(3)",
])
def test_malformed_instructions_rejected(line):
    with pytest.raises(InstructionParseError):
        parse_instruction(line)


def test_reference_with_spaces():
    """The whole line is the instance identifier, spaces included."""
    instruction = parse_instruction("  printer A ")
    assert instruction.kind == InstructionKind.REFERENCE
    assert instruction.reference == "printer A"


def test_spaced_instance_ids_usable_by_processes():
    """Instance ids declared with spaces can be referenced and claimed."""
    print("\n" + "="*60)
    print("TEST 3: Instance Ids With Spaces")
    print("="*60)

    catalog = parse_resource_lines(["Printers: printer A, printer B"])
    processes = parse_process_lines(
        ["process_1", "request(1)", "printer A", "use_resources", "end"],
        catalog,
    )
    print(f"  References: {processes[0].referenced_instances()}")

    assert catalog.resource_index_of("printer B") == 0
    assert processes[0].referenced_instances() == ["printer A"]

    with pytest.raises(LoadError):
        parse_process_lines(["process_1", "printer C"], catalog)
    print("  ✓ Spaced ids accepted, unknown ones rejected")


def test_resource_lines():
    catalog = parse_resource_lines([
        "# printers and disks",
        "R1: p1, p2, p3",
        "",
        "R2:d1,d2",
    ])
    assert catalog.names == ["R1", "R2"]
    assert np.array_equal(catalog.instance_counts, [3, 2])
    assert catalog.resource_index_of("d2") == 1
    assert catalog.resource_index_of("zz") is None


@pytest.mark.parametrize("lines", [
    ["R1 p1, p2"],
    [": p1"],
    ["R1: p1, , p2"],
    ["R1:"],
    ["R1: a", "R1: b"],
    ["R1: a", "R2: a"],
    [],
])
def test_bad_resource_lines(lines):
    with pytest.raises(LoadError):
        parse_resource_lines(lines)


def test_process_lines_with_attributes_and_defaults():
    """Header attributes, attribute lines and config defaults all apply."""
    print("\n" + "="*60)
    print("TEST 2: Process Descriptor Parsing")
    print("="*60)

    catalog = parse_resource_lines(["R1: a, b", "R2: c"])
    config = SimulationConfig(default_deadline=50, default_computation_time=7)
    processes = parse_process_lines([
        "process_1 deadline=10 computation_time=3",
        "request(1, 1)",
        "compute(3)",
        "end",
        "process_2",
        "deadline: 4",
        "a",
        "use_resources",
        "process_9",
        "end",
    ], catalog, config)

    for p in processes:
        print(f"  P{p.pid}: deadline={p.deadline}, computation={p.computation_time}, "
              f"instructions={[str(i) for i in p.instructions]}")

    assert [p.pid for p in processes] == [1, 2, 3], "Ids follow declaration order"
    assert (processes[0].deadline, processes[0].computation_time) == (10, 3)
    assert (processes[1].deadline, processes[1].computation_time) == (4, 7)
    assert (processes[2].deadline, processes[2].computation_time) == (50, 7)
    assert processes[1].referenced_instances() == ["a"]
    assert processes[0].declared_maximum(2) == [1, 1]
    print("  ✓ Descriptors built")


@pytest.mark.parametrize("lines", [
    ["request(1, 1)"],
    ["process_1", "request(1)"],
    ["process_1", "release(1, 0, 0)"],
    ["process_1", "unknown_instance"],
    ["process_1", "jump(2)"],
    ["process_1 deadline=-3"],
])
def test_bad_process_lines(lines):
    catalog = parse_resource_lines(["R1: a, b", "R2: c"])
    with pytest.raises(LoadError):
        parse_process_lines(lines, catalog)


def test_load_text_files():
    catalog = load_resource_catalog(str(SCENARIOS_DIR / "sample_resources.txt"))
    processes = load_processes(str(SCENARIOS_DIR / "sample_processes.txt"), catalog)

    assert catalog.names == ["R1", "R2"]
    assert [p.pid for p in processes] == [1, 2, 3]
    assert [p.deadline for p in processes] == [12, 5, 8]


def test_missing_files(tmp_path):
    with pytest.raises(LoadError):
        load_resource_catalog(str(tmp_path / "nope.txt"))
    with pytest.raises(LoadError):
        load_scenario(str(tmp_path / "nope.json"))


def test_unreadable_files(tmp_path):
    """Undecodable bytes and directories fail as LoadError, keeping the cause."""
    binary = tmp_path / "resources.txt"
    binary.write_bytes(b"R1: a, \xff\xfe\n")
    with pytest.raises(LoadError) as excinfo:
        load_resource_catalog(str(binary))
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)

    with pytest.raises(LoadError):
        load_processes(str(tmp_path), parse_resource_lines(["R1: a"]))

    with pytest.raises(LoadError) as excinfo:
        load_scenario(str(tmp_path))
    assert isinstance(excinfo.value.__cause__, OSError)

    bad_json = tmp_path / "scenario.json"
    bad_json.write_bytes(b'{"resources": "\xff"}')
    with pytest.raises(LoadError):
        load_scenario(str(bad_json))
    assert get_scenario_description(str(bad_json)) == ""


def test_load_json_scenario():
    catalog, processes = load_scenario(str(TEST_SCENARIOS_DIR / "llf_pair.json"))
    assert catalog.names == ["CPU"]
    assert [(p.pid, p.deadline, p.computation_time) for p in processes] == [(1, 10, 2), (2, 4, 1)]


def test_json_defaults_from_config(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps({
        "resources": [{"name": "R1", "instances": ["a"]}],
        "processes": [{"instructions": ["request(1)", "end"]}],
    }))
    _, processes = load_scenario(str(path), SimulationConfig(default_deadline=8, default_computation_time=2))
    assert (processes[0].deadline, processes[0].computation_time) == (8, 2)


@pytest.mark.parametrize("data", [
    "{not json",
    json.dumps([]),
    json.dumps({"processes": []}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}]}),
    json.dumps({"resources": [{"name": "R1"}], "processes": []}),
    json.dumps({"resources": [{"name": "R1", "instances": []}], "processes": []}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}], "processes": [{}]}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}],
                "processes": [{"deadline": "soon", "instructions": []}]}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}],
                "processes": [{"instructions": ["request(1, 1)"]}]}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}], "processes": 3}),
    json.dumps({"resources": {"name": "R1"}, "processes": []}),
    json.dumps({"resources": [7], "processes": []}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}], "processes": [5]}),
    json.dumps({"resources": [{"name": "R1", "instances": ["a"]}],
                "processes": [{"instructions": 4}]}),
])
def test_bad_json_scenarios(tmp_path, data):
    path = tmp_path / "bad.json"
    path.write_text(data)
    with pytest.raises(LoadError):
        load_scenario(str(path))


def test_scenario_description(tmp_path):
    assert "EDF" in get_scenario_description(str(SCENARIOS_DIR / "demo_edf.json"))
    assert get_scenario_description(str(tmp_path / "missing.json")) == ""
