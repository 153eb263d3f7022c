"""Architectural tests over the onboarding package sources and schema files.

AST-based checks only; nothing under onboarding/ is imported here.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path
from typing import Dict, Iterable, List

import pytest
from jsonschema import Draft202012Validator

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_DIR = PROJECT_ROOT / "onboarding"
SCHEMAS_DIR = PROJECT_ROOT / "docs" / "schemas"


def _python_files(root: Path) -> Iterable[Path]:
    return sorted(p for p in root.rglob("*.py") if "__pycache__" not in p.parts)


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Syntax error in {path}: {exc}")


def _module_names(tree: ast.Module) -> Dict[str, ast.AST]:
    out: Dict[str, ast.AST] = {}
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            out[node.name] = node
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    out[target.id] = node
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            out[node.target.id] = node
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            for alias in node.names:
                out[(alias.asname or alias.name).split(".")[0]] = node
    return out


def _declared_all(tree: ast.Module) -> List[str]:
    for node in tree.body:
        if isinstance(node, ast.Assign) and any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
            return [elt.value for elt in node.value.elts if isinstance(elt, ast.Constant)]
    return []


def test_no_bare_except_in_package():
    offenders = []
    for path in _python_files(PACKAGE_DIR):
        for node in ast.walk(_parse(path)):
            if isinstance(node, ast.ExceptHandler) and node.type is None:
                offenders.append(f"{path.relative_to(PROJECT_ROOT)}:{node.lineno}")
    assert not offenders, offenders


def test_logic_modules_export_only_defined_names():
    for path in _python_files(PACKAGE_DIR / "logic"):
        tree = _parse(path)
        exported = _declared_all(tree)
        assert exported, f"{path.name} must declare __all__"
        missing = set(exported) - set(_module_names(tree))
        assert not missing, f"{path.name} exports undefined names {sorted(missing)}"


def test_logic_modules_use_module_logger():
    for path in _python_files(PACKAGE_DIR / "logic"):
        source = path.read_text(encoding="utf-8")
        if "logging." in source or "logger." in source:
            assert "logging.getLogger(__name__)" in source, path.name


def test_logic_layer_does_not_import_web_framework():
    for path in _python_files(PACKAGE_DIR / "logic"):
        for node in ast.walk(_parse(path)):
            if isinstance(node, ast.ImportFrom) and node.module:
                assert not node.module.startswith(("fastapi", "starlette")), path.name
            if isinstance(node, ast.Import):
                assert not any(a.name.startswith(("fastapi", "starlette")) for a in node.names), path.name


def test_sql_stays_in_the_repository():
    for path in _python_files(PACKAGE_DIR):
        if path.name in {"repository_snapshots.py", "main.py"} or path.parent.name == "db":
            continue
        source = path.read_text(encoding="utf-8")
        assert "sql_text(" not in source and "text(\"SELECT" not in source, path.name


def test_submission_schema_is_valid_draft_2020_12():
    path = SCHEMAS_DIR / "QuestionnaireSubmission.schema.json"
    schema = json.loads(path.read_text(encoding="utf-8"))
    assert schema.get("$schema") == "https://json-schema.org/draft/2020-12/schema"
    Draft202012Validator.check_schema(schema)
    assert set(schema["required"]) == {"applyingbehalf", "employmentStatus", "ownAnotherProperty", "otherDetails", "responses"}


def test_migration_creates_snapshot_table():
    sql = (PROJECT_ROOT / "migrations" / "001_questionnaire_snapshot.sql").read_text(encoding="utf-8")
    assert "CREATE TABLE IF NOT EXISTS questionnaire_snapshot" in sql
    for column in ("applicant_id", "payload", "current_question_id", "visited_questions", "question_history", "is_completed"):
        assert column in sql
