"""DIMACS CNF templates and the preimage instances derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .candidate import is_regular_output
from .errors import ConfigurationError
from .stages import HASH_LEN, SearchConfig


@dataclass(frozen=True)
class CnfTemplate:
    stage: int
    path: Path
    var_num: int
    clauses: List[str]

    @property
    def clause_num(self) -> int:
        return len(self.clauses)


def _parse_header(line: str, path: Path, line_no: int) -> int:
    parts = line.split()
    if len(parts) != 4 or parts[1] != "cnf":
        raise ConfigurationError(f"Invalid CNF header at {path}:{line_no}: {line}")
    try:
        var_num = int(parts[2])
        int(parts[3])
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid CNF header at {path}:{line_no}: {line}"
        ) from exc
    return var_num


def read_cnf_template(path: str | Path, stage: int) -> CnfTemplate:
    """Read a template CNF; clauses are kept verbatim, comments dropped."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as exc:
        raise ConfigurationError(
            f"Template for stage {stage} could not be read: {path} ({exc})"
        ) from exc
    var_num: Optional[int] = None
    clauses: List[str] = []
    for line_no, line in enumerate(lines, start=1):
        raw = line.strip()
        if not raw or raw.startswith("c"):
            continue
        if raw.startswith("p"):
            var_num = _parse_header(raw, path, line_no)
            continue
        clauses.append(raw)
    if var_num is None:
        raise ConfigurationError(f"Template {path} has no 'p cnf' header.")
    if var_num <= 0:
        raise ConfigurationError(f"Template {path} declares {var_num} variables.")
    if not clauses:
        raise ConfigurationError(f"Template {path} has no clauses.")
    if var_num < HASH_LEN:
        raise ConfigurationError(
            f"Template {path} declares {var_num} variables; "
            f"at least {HASH_LEN} output variables are required."
        )
    return CnfTemplate(stage=stage, path=path, var_num=var_num, clauses=clauses)


def load_templates(config: SearchConfig) -> Dict[int, CnfTemplate]:
    """Read the template of every stage; any missing one is fatal."""
    return {
        stage: read_cnf_template(config.template_path(stage), stage)
        for stage in config.stages()
    }


def output_literals(var_num: int, bits: str) -> List[int]:
    """Literals pinning the last len(bits) variables to `bits`, in order."""
    first_var = var_num - len(bits) + 1
    if first_var < 1:
        raise ValueError("Output is longer than the template variable count.")
    lits = []
    for i, bit in enumerate(bits):
        if bit not in "01":
            raise ValueError(f"Invalid output bit '{bit}' at position {i}.")
        var = first_var + i
        lits.append(-var if bit == "0" else var)
    return lits


def format_instance(template: CnfTemplate, bits: str) -> List[str]:
    if len(bits) != HASH_LEN:
        raise ValueError(f"Output must have {HASH_LEN} bits, got {len(bits)}.")
    if not is_regular_output(bits):
        raise ValueError("Output is not a regular output (8 bits then their complement).")
    lits = output_literals(template.var_num, bits)
    lines = [f"p cnf {template.var_num} {template.clause_num + len(lits)}"]
    lines.extend(template.clauses)
    lines.extend(f"{lit} 0" for lit in lits)
    return lines


def materialize_instance(template: CnfTemplate, bits: str, path: str | Path) -> Path:
    """Write the template with the output pinned by unit clauses."""
    path = Path(path)
    lines = format_instance(template, bits)
    with path.open("w", encoding="utf-8") as f:
        f.write("\n".join(lines))
        f.write("\n")
    return path


def instance_path(
    config: SearchConfig,
    stage: int,
    worker_id: int,
    generation: Optional[int] = None,
) -> Path:
    stem = Path(config.template_pattern.format(stage=stage)).stem
    name = f"{stem}_hashlen{HASH_LEN}_seed{worker_id}"
    if config.keep_instances and generation is not None:
        name += f"_gen{generation}"
    return config.work_dir / f"{name}.cnf"


__all__ = [
    "CnfTemplate",
    "read_cnf_template",
    "load_templates",
    "output_literals",
    "format_instance",
    "materialize_instance",
    "instance_path",
]
