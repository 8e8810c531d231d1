"""
Layer boundaries between the overtime packages.

1. overtime_kernel/** never imports overtime_config, overtime_services or
   overtime_batch. The kernel never depends upward.
2. overtime_kernel/domain/** is pure: no SQLAlchemy, no other kernel layer.
3. overtime_batch/** does not import overtime_services or overtime_config;
   it is wired from above.
4. Only the clock module reads wall-clock time.

These tests read source code via AST -- they cannot break anything.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """(line_number, module) for every import in a file."""
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for path in _python_files(package):
        for lineno, module in _extract_imports(path):
            if any(module == p or module.startswith(f"{p}.") for p in forbidden):
                found.append(f"  {path.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return found


class TestKernelNoUpwardDependencies:
    def test_kernel_does_not_import_outer_packages(self):
        violations = _violations(
            "overtime_kernel", ("overtime_config", "overtime_services", "overtime_batch"),
        )
        assert not violations, "Kernel imports an outer package:\n" + "\n".join(violations)


class TestPureDomain:
    def test_domain_has_no_io_imports(self):
        violations = _violations(
            "overtime_kernel/domain",
            (
                "sqlalchemy",
                "overtime_kernel.db",
                "overtime_kernel.models",
                "overtime_kernel.selectors",
                "overtime_kernel.services",
            ),
        )
        assert not violations, "Domain layer performs I/O:\n" + "\n".join(violations)


class TestBatchWiredFromAbove:
    def test_batch_does_not_import_services_or_config(self):
        violations = _violations("overtime_batch", ("overtime_services", "overtime_config"))
        assert not violations, "\n".join(violations)


class TestClockDiscipline:
    def test_only_clock_module_reads_wall_time(self):
        offenders = []
        for package in ("overtime_kernel", "overtime_batch", "overtime_services"):
            for path in _python_files(package):
                if path.name == "clock.py":
                    continue
                tree = ast.parse(path.read_text(), filename=str(path))
                for node in ast.walk(tree):
                    if (
                        isinstance(node, ast.Call)
                        and isinstance(node.func, ast.Attribute)
                        and node.func.attr in ("now", "utcnow", "today")
                        and isinstance(node.func.value, ast.Name)
                        and node.func.value.id in ("datetime", "date")
                    ):
                        offenders.append(f"  {path.relative_to(REPO_ROOT)}:{node.lineno}")
        assert not offenders, "Direct wall-clock reads:\n" + "\n".join(offenders)
