"""
Instruction model for the Banker's Scheduler Simulator.

Decodes the textual instruction stream of a process into tagged
Instruction values once, at load time.

Grammar (one directive per line):
    compute(n)              calculate(n) is accepted as a synonym
    request(n1, n2, ...)    one amount per resource type
    release(n1, n2, ...)
    use_resources
    print_resources_used
    end
Any other line is an instance reference, e.g. "r1_a" or "printer A".
The whole stripped line is the identifier, so identifiers may contain
spaces. References are consumed only by use_resources.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class InstructionKind(Enum):
    """Directive kinds understood by the execution engine."""
    COMPUTE = "compute"
    REQUEST = "request"
    USE_RESOURCES = "use_resources"
    RELEASE = "release"
    PRINT_RESOURCES_USED = "print_resources_used"
    END = "end"
    REFERENCE = "reference"


class InstructionParseError(ValueError):
    """Raised when an instruction line does not match the grammar."""
    pass


# Keyword -> kind. "calculate" is the historical spelling of compute.
_KEYWORDS = {
    "compute": InstructionKind.COMPUTE,
    "calculate": InstructionKind.COMPUTE,
    "request": InstructionKind.REQUEST,
    "release": InstructionKind.RELEASE,
    "use_resources": InstructionKind.USE_RESOURCES,
    "print_resources_used": InstructionKind.PRINT_RESOURCES_USED,
    "end": InstructionKind.END,
}

_VECTOR_KINDS = (InstructionKind.REQUEST, InstructionKind.RELEASE)
_BARE_KINDS = (
    InstructionKind.USE_RESOURCES,
    InstructionKind.PRINT_RESOURCES_USED,
    InstructionKind.END,
)

_DIRECTIVE_RE = re.compile(r"^(?P<keyword>[A-Za-z_]\w*)\s*(?:\((?P<args>[^()]*)\))?\s*;?$")


@dataclass(frozen=True)
class Instruction:
    """
    A single decoded instruction.

    Attributes:
        kind: Directive kind
        args: Integer arguments (duration for compute, amounts for request/release)
        text: Original source line (stripped)
    """
    kind: InstructionKind
    args: Tuple[int, ...] = ()
    text: str = ""

    @property
    def duration(self) -> int:
        """Duration of a compute directive."""
        if self.kind != InstructionKind.COMPUTE:
            raise AttributeError(f"{self.kind.value} has no duration")
        return self.args[0]

    @property
    def reference(self) -> str:
        """Instance identifier of a reference line."""
        if self.kind != InstructionKind.REFERENCE:
            raise AttributeError(f"{self.kind.value} is not an instance reference")
        return self.text

    def __str__(self) -> str:
        if self.kind == InstructionKind.REFERENCE:
            return self.text
        if self.kind in _BARE_KINDS:
            return self.kind.value
        return f"{self.kind.value}({', '.join(str(a) for a in self.args)})"


def _parse_integers(raw: str, line: str) -> Tuple[int, ...]:
    """Parse a comma-separated list of non-negative integers."""
    values = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            raise InstructionParseError(f"Empty argument in '{line}'")
        try:
            value = int(token)
        except ValueError:
            raise InstructionParseError(f"Non-integer argument '{token}' in '{line}'")
        if value < 0:
            raise InstructionParseError(f"Negative argument {value} in '{line}'")
        values.append(value)
    return tuple(values)


def parse_instruction(line: str) -> Instruction:
    """
    Decode one instruction line.

    Args:
        line: Raw instruction text

    Returns:
        Decoded Instruction

    Raises:
        InstructionParseError: If the line is not a valid directive or reference
    """
    text = line.strip()
    if not text:
        raise InstructionParseError("Empty instruction")

    match = _DIRECTIVE_RE.match(text)
    keyword = match.group("keyword") if match else None

    if keyword in _KEYWORDS:
        kind = _KEYWORDS[keyword]
        raw_args = match.group("args")

        if kind == InstructionKind.COMPUTE:
            if raw_args is None:
                raise InstructionParseError(f"{keyword} requires a duration: '{text}'")
            args = _parse_integers(raw_args, text)
            if len(args) != 1:
                raise InstructionParseError(f"{keyword} takes exactly one argument: '{text}'")
            return Instruction(kind, args, text)

        if kind in _VECTOR_KINDS:
            if raw_args is None:
                raise InstructionParseError(f"{keyword} requires amounts: '{text}'")
            return Instruction(kind, _parse_integers(raw_args, text), text)

        # use_resources / print_resources_used / end take no arguments
        if raw_args is not None and raw_args.strip():
            raise InstructionParseError(f"{keyword} takes no arguments: '{text}'")
        return Instruction(kind, (), text)

    if match and match.group("args") is not None:
        raise InstructionParseError(f"Unknown directive '{keyword}' in '{text}'")

    # Membership in the catalog is checked by the loader
    return Instruction(InstructionKind.REFERENCE, (), text)


def parse_instructions(lines) -> List[Instruction]:
    """Decode a sequence of instruction lines, skipping blank ones."""
    return [parse_instruction(line) for line in lines if line.strip()]
