from __future__ import annotations

import argparse
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

import yaml

from mlc.ast_load import load_expr
from mlc.codegen import emit_program
from mlc.labels import CompilationSession


REPO_ROOT = Path(__file__).resolve().parents[2]
GOLDEN_ROOT = REPO_ROOT / "tests" / "golden" / "cases"


@dataclass(frozen=True)
class CaseExpect:
    asm: str | None
    error: str | None


@dataclass(frozen=True)
class GoldenCase:
    spec_path: Path
    program: object
    expect: CaseExpect


@dataclass(frozen=True)
class CaseResult:
    spec_path: Path
    ok: bool
    details: list[str]


def _require_type(value: object, expected_type: type, label: str) -> None:
    if not isinstance(value, expected_type):
        raise ValueError(f"{label} must be {expected_type.__name__}")


def _read_text_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _parse_expect(raw: object, *, spec_path: Path) -> CaseExpect:
    _require_type(raw, dict, f"{spec_path}: expect")
    expect_obj: dict[str, object] = raw  # type: ignore[assignment]

    asm_file_raw = expect_obj.get("asm_file")
    error_raw = expect_obj.get("error")
    if asm_file_raw is not None and error_raw is not None:
        raise ValueError(f"{spec_path}: expect.asm_file and expect.error are mutually exclusive")
    if asm_file_raw is None and error_raw is None:
        raise ValueError(f"{spec_path}: expect needs one of asm_file or error")

    if error_raw is not None:
        _require_type(error_raw, str, f"{spec_path}: expect.error")
        return CaseExpect(asm=None, error=error_raw)

    _require_type(asm_file_raw, str, f"{spec_path}: expect.asm_file")
    asm = _read_text_file((spec_path.parent / asm_file_raw).resolve())
    return CaseExpect(asm=asm, error=None)


def load_case(spec_path: Path) -> GoldenCase:
    raw_data = yaml.safe_load(spec_path.read_text(encoding="utf-8"))
    if raw_data is None:
        raw_data = {}
    _require_type(raw_data, dict, f"{spec_path}")
    data: dict[str, object] = raw_data  # type: ignore[assignment]

    if "program" not in data:
        raise ValueError(f"{spec_path}: missing required top-level 'program'")
    if "expect" not in data:
        raise ValueError(f"{spec_path}: missing required top-level 'expect'")

    return GoldenCase(
        spec_path=spec_path,
        program=data["program"],
        expect=_parse_expect(data["expect"], spec_path=spec_path),
    )


def discover_cases(filter_glob: str | None = None) -> list[GoldenCase]:
    if not GOLDEN_ROOT.exists():
        return []

    pattern = filter_glob or "**/*_spec.yaml"
    spec_files = sorted(path for path in GOLDEN_ROOT.glob(pattern) if path.is_file())
    return [load_case(path) for path in spec_files]


def _assemble(asm: str) -> str | None:
    cc = shutil.which("cc")
    if cc is None:
        return "C compiler 'cc' not found"

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        asm_path = tmp / "program.s"
        asm_path.write_text(asm, encoding="utf-8")
        proc = subprocess.run(
            [cc, "-c", str(asm_path), "-o", str(tmp / "program.o")],
            capture_output=True,
            text=True,
            check=False,
        )
    if proc.returncode != 0:
        return (proc.stderr or proc.stdout).strip() or f"assembler failed with exit code {proc.returncode}"
    return None


def _diff_lines(expected: str, actual: str) -> list[str]:
    expected_lines = expected.split("\n")
    actual_lines = actual.split("\n")
    for index, (want, got) in enumerate(zip(expected_lines, actual_lines), start=1):
        if want != got:
            return [f"line {index}: expected {want!r}, got {got!r}"]
    return [f"line count: expected {len(expected_lines)}, got {len(actual_lines)}"]


def run_case(case: GoldenCase, *, assemble: bool = False) -> CaseResult:
    expect = case.expect
    try:
        program = load_expr(case.program)
        asm = emit_program(program, CompilationSession())
    except (ValueError, NotImplementedError) as error:
        if expect.error is not None and expect.error in str(error):
            return CaseResult(spec_path=case.spec_path, ok=True, details=[])
        return CaseResult(spec_path=case.spec_path, ok=False, details=[f"compile error: {error}"])

    errors: list[str] = []
    if expect.error is not None:
        errors.append(f"expected error containing '{expect.error}' but compilation succeeded")
    elif asm != expect.asm:
        errors.append("assembly mismatch")
        errors.extend(_diff_lines(expect.asm or "", asm))

    if assemble and not errors:
        assemble_error = _assemble(asm)
        if assemble_error is not None:
            errors.append(f"assemble: {assemble_error}")

    return CaseResult(spec_path=case.spec_path, ok=len(errors) == 0, details=errors)


def _print_result(result: CaseResult) -> None:
    rel_path = result.spec_path.relative_to(REPO_ROOT)
    if result.ok:
        print(f"PASS {rel_path}")
        return

    print(f"FAIL {rel_path}")
    for detail in result.details:
        print(f"  - {detail}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Check emitted assembly against golden files.",
    )
    parser.add_argument("--filter", help="Glob relative to tests/golden/cases (default: **/*_spec.yaml)")
    parser.add_argument("--assemble", action="store_true", help="Also assemble each output with 'cc -c'")
    args = parser.parse_args()

    cases = discover_cases(args.filter)
    if not cases:
        print("no golden cases found")
        return 1

    results = [run_case(case, assemble=args.assemble) for case in cases]
    for result in results:
        _print_result(result)

    failed = sum(1 for result in results if not result.ok)
    print(f"\n{len(results) - failed} passed, {failed} failed")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
