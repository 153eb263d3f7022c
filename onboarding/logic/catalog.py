"""Question catalog: YAML loading, startup validation and id-normalised lookup.

The catalog is loaded once per process and treated as read-only. All lookups
accept either an int or a str question id; both are normalised with
`canonical_id` before comparison.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from onboarding.models.question import Flow, Question

logger = logging.getLogger(__name__)

QuestionId = Union[int, str]


class CatalogError(ValueError):
    pass


def canonical_id(qid: QuestionId) -> str:
    """Return the canonical string form of a question id.

    ``5``, ``"5"`` and ``" 5 "`` all map to ``"5"``. Booleans and
    non-numeric strings are rejected.
    """
    if isinstance(qid, bool):
        raise CatalogError(f"invalid question id: {qid!r}")
    if isinstance(qid, int):
        return str(qid)
    if isinstance(qid, str):
        text = qid.strip()
        if text.lstrip("-").isdigit():
            return str(int(text))
    raise CatalogError(f"invalid question id: {qid!r}")


class CategoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    applicant: str = "primary"
    start: Dict[str, int]

    def start_for(self, selector_value: Optional[str]) -> Optional[int]:
        return self.start.get(selector_value or "")


class FlowSelector(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: int
    flows: Dict[str, List[Flow]]


class ApplicantSources(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: int
    employment: int
    properties: int


class CoApplicantSources(BaseModel):
    model_config = ConfigDict(frozen=True)

    details: int
    employment: int
    properties: int


class SummarySources(BaseModel):
    """Question ids the derived summary fields are read from.

    `applicants` is keyed by flow-selector value; `co_applicant` is only
    consulted in the co-signer flow.
    """

    model_config = ConfigDict(frozen=True)

    applicants: Dict[str, ApplicantSources] = {}
    co_applicant: Optional[CoApplicantSources] = None


class CatalogDocument(BaseModel):
    """Top-level shape of the authored YAML document."""

    first_question: int
    flow_selector: FlowSelector
    default_responses: Dict[str, Any] = {}
    co_signer_copy_map: Dict[int, int] = {}
    summary_sources: SummarySources = SummarySources()
    categories: List[CategoryEntry] = []
    shared_option_lists: Dict[str, Any] = {}
    questions: List[Question]


class QuestionCatalog:
    """Read-only collection of questions plus the tables that travel with it."""

    def __init__(self, document: CatalogDocument) -> None:
        self._questions: Dict[str, Question] = {}
        for q in document.questions:
            if q.key in self._questions:
                raise CatalogError(f"duplicate question id {q.id}")
            self._questions[q.key] = q
        self.first_question_id: int = document.first_question
        self.flow_selector_id: int = document.flow_selector.question
        self._selector_flows: Dict[str, frozenset] = {
            value: frozenset(flows) for value, flows in document.flow_selector.flows.items()
        }
        self._defaults: Dict[str, Any] = {
            canonical_id(k): v for k, v in document.default_responses.items()
        }
        self.copy_map: Dict[int, int] = dict(document.co_signer_copy_map)
        self.summary_sources: SummarySources = document.summary_sources
        self._categories: Dict[str, CategoryEntry] = {}
        for entry in document.categories:
            if entry.id in self._categories:
                raise CatalogError(f"duplicate category id {entry.id}")
            self._categories[entry.id] = entry
        self._validate()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, qid: Optional[QuestionId]) -> Optional[Question]:
        if qid is None:
            return None
        try:
            return self._questions.get(canonical_id(qid))
        except CatalogError:
            return None

    def __contains__(self, qid: object) -> bool:
        return self.get(qid) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions.values())

    def __len__(self) -> int:
        return len(self._questions)

    def ids(self) -> List[int]:
        return [q.id for q in self._questions.values()]

    @property
    def terminal_ids(self) -> List[int]:
        return [q.id for q in self if q.is_terminal]

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------
    @property
    def selector_values(self) -> List[str]:
        return list(self._selector_flows.keys())

    def flows_for(self, selector_value: Optional[str]) -> frozenset:
        """Return the non-shared flows activated by a selector answer."""
        if not isinstance(selector_value, str):
            return frozenset()
        return self._selector_flows.get(selector_value, frozenset())

    def selector_value_for(self, flow: Flow) -> Optional[str]:
        """Selector answer that activates `flow`, if any."""
        for value, flows in self._selector_flows.items():
            if flow in flows:
                return value
        return None

    def in_flows(self, qid: QuestionId, flows: Iterable[Flow]) -> bool:
        q = self.get(qid)
        if q is None:
            return False
        return q.flow == Flow.SHARED or q.flow in set(flows)

    def default_responses(self) -> Dict[str, Any]:
        return copy.deepcopy(self._defaults)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def category(self, category_id: str) -> Optional[CategoryEntry]:
        return self._categories.get(category_id)

    def categories(self) -> List[CategoryEntry]:
        return list(self._categories.values())

    # ------------------------------------------------------------------
    # Startup validation
    # ------------------------------------------------------------------
    def _validate(self) -> None:
        problems: List[str] = []

        def _exists(target: Optional[int]) -> bool:
            return target is not None and canonical_id(target) in self._questions

        if not _exists(self.first_question_id):
            problems.append(f"first_question {self.first_question_id} is not defined")

        for q in self:
            if q.is_terminal:
                if q.next_question is not None or q.next_question_map:
                    problems.append(f"terminal question {q.id} declares a successor")
                continue
            if q.next_question is not None and not _exists(q.next_question):
                problems.append(f"question {q.id} next_question {q.next_question} is not defined")
            for value, target in (q.next_question_map or {}).items():
                if not _exists(target):
                    problems.append(f"question {q.id} branch {value!r} -> {target} is not defined")
            if q.next_question is None:
                if not q.next_question_map:
                    problems.append(f"question {q.id} has no successor")
                else:
                    uncovered = [v for v in q.option_values() if v not in q.next_question_map]
                    if uncovered:
                        problems.append(f"question {q.id} has no successor for options {uncovered}")

        selector = self.get(self.flow_selector_id)
        if selector is None:
            problems.append(f"flow selector {self.flow_selector_id} is not defined")
        elif selector.flow != Flow.SHARED:
            problems.append(f"flow selector {self.flow_selector_id} must be shared")
        elif set(selector.option_values()) != set(self._selector_flows):
            problems.append("flow selector options do not match declared flows")

        for key in self._defaults:
            if key not in self._questions:
                problems.append(f"default response for unknown question {key}")

        for entry in self._categories.values():
            if not entry.start:
                problems.append(f"category {entry.id} declares no start question")
            for selector_value, start in entry.start.items():
                if selector_value not in self._selector_flows:
                    problems.append(f"category {entry.id} uses unknown selector value {selector_value!r}")
                q = self.get(start)
                if q is None:
                    problems.append(f"category {entry.id} start {start} is not defined")
                elif q.category != entry.id:
                    problems.append(
                        f"category {entry.id} start {start} lies in category {q.category}"
                    )

        for src, dst in self.copy_map.items():
            sq, dq = self.get(src), self.get(dst)
            if sq is None or dq is None:
                problems.append(f"copy map {src} -> {dst} references an undefined question")
                continue
            if sq.flow != Flow.SOLO or dq.flow != Flow.CO_PRIMARY:
                problems.append(f"copy map {src} -> {dst} must map solo to co_primary")
            if sq.category != dq.category:
                problems.append(f"copy map {src} -> {dst} crosses categories")

        for selector_value, sources in self.summary_sources.applicants.items():
            if selector_value not in self._selector_flows:
                problems.append(f"summary sources use unknown selector value {selector_value!r}")
            for role, qid in sources.model_dump().items():
                if not _exists(qid):
                    problems.append(f"summary {role} source {qid} for {selector_value!r} is not defined")
        co_sources = self.summary_sources.co_applicant
        if co_sources is not None:
            for role, qid in co_sources.model_dump().items():
                q = self.get(qid)
                if q is None:
                    problems.append(f"co-applicant summary {role} source {qid} is not defined")
                elif q.flow != Flow.CO_APPLICANT:
                    problems.append(f"co-applicant summary {role} source {qid} must be co_applicant")

        if problems:
            for p in problems:
                logger.error("catalog_invalid detail=%s", p)
            raise CatalogError("; ".join(problems))


def parse_catalog(data: Any) -> QuestionCatalog:
    """Build a catalog from an already-parsed YAML/dict document."""
    if not isinstance(data, dict):
        raise CatalogError("catalog document must be a mapping")
    try:
        document = CatalogDocument.model_validate(data)
    except PydanticValidationError as e:
        logger.error("catalog_schema_invalid error=%s", e)
        raise CatalogError(str(e)) from e
    return QuestionCatalog(document)


def load_catalog(path: Union[str, Path]) -> QuestionCatalog:
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.error("catalog_load_failed path=%s error=%s", p, e)
        raise CatalogError(f"unable to read catalog {p}: {e}") from e
    catalog = parse_catalog(raw)
    logger.info("catalog_loaded path=%s questions=%s", p, len(catalog))
    return catalog


__all__ = [
    "CatalogError",
    "CategoryEntry",
    "QuestionCatalog",
    "QuestionId",
    "SummarySources",
    "canonical_id",
    "load_catalog",
    "parse_catalog",
]
