"""
CarryOn Baggage Checker

Main orchestrator for one item check.
Coordinates: Classify (external) -> Bridge -> Questions -> Rules -> History

Principles:
- Verdicts come from the rules engine only
- Classifier output enters as facts through the ExtractionBridge
- Low classifier confidence is surfaced as a warning, never used as a gate
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from carryon.core.bridge import ExtractionBridge, as_extraction
from carryon.core.catalog import DEFAULT_CATALOG, Category, CategoryCatalog
from carryon.core.entities import Extraction, ScanRecord, Verdict
from carryon.core.ports import HistoryPort
from carryon.core.questions import Question, parse_answer, pending_questions
from carryon.core.rules import RuleEngine

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_WARNING = (
    "The item was recognised with low confidence. Please check that the "
    "category and the detected values are correct."
)


@dataclass
class CheckerConfig:
    """Configuration for the checker."""

    # History
    save_history: bool = True

    # Questions
    ask_optional_questions: bool = True


@dataclass
class CheckSession:
    """
    State of a check that still needs answers from the traveller.

    Stores the category and the facts collected so far.
    """
    category: Category
    facts: Dict[str, Any] = field(default_factory=dict)
    extraction: Optional[Extraction] = None
    include_optional: bool = True
    photo_ref: Optional[str] = None
    catalog: Optional[CategoryCatalog] = None

    @property
    def pending_questions(self) -> List[Question]:
        return pending_questions(
            self.category.id,
            self.facts,
            include_optional=self.include_optional,
            catalog=self.catalog,
        )

    @property
    def is_ready(self) -> bool:
        """True once no required question is pending."""
        return not any(q.required for q in self.pending_questions)

    def answer(self, fact_key: str, raw: Any) -> None:
        """
        Records an answer.

        Raises:
            KeyError: If no pending question asks for this fact
            InvalidAnswerError: If the answer is not usable
        """
        for question in self.pending_questions:
            if question.fact_key == fact_key:
                self.facts[fact_key] = parse_answer(question, raw)
                return
        raise KeyError(f"No pending question for fact {fact_key!r}")

    def skip_optional(self) -> None:
        """Stops asking optional questions."""
        self.include_optional = False


@dataclass(frozen=True)
class CheckResult:
    """Result of a check step."""

    category: Optional[Category] = None
    facts: Mapping[str, Any] = field(default_factory=dict)
    verdict: Optional[Verdict] = None
    session: Optional[CheckSession] = None
    warnings: Tuple[str, ...] = ()
    summary: Optional[str] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def is_resolved(self) -> bool:
        return self.verdict is not None

    @property
    def needs_questions(self) -> bool:
        return self.verdict is None and self.session is not None

    @property
    def needs_category(self) -> bool:
        return self.verdict is None and self.category is None


class BaggageChecker:
    """
    Runs item checks against the rules engine.

    Example:
    ```python
    checker = BaggageChecker(history=SQLiteHistoryAdapter(path))

    result = checker.check_extraction(extraction)
    if result.needs_questions:
        for question in result.session.pending_questions:
            result.session.answer(question.fact_key, ask(question.text))
        result = checker.finish(result.session)

    print(result.verdict.hand_baggage.status.value)
    ```
    """

    def __init__(
        self,
        config: Optional[CheckerConfig] = None,
        engine: Optional[RuleEngine] = None,
        bridge: Optional[ExtractionBridge] = None,
        catalog: Optional[CategoryCatalog] = None,
        history: Optional[HistoryPort] = None,
    ) -> None:
        self.config = config or CheckerConfig()
        self.catalog = catalog or DEFAULT_CATALOG
        self.engine = engine or RuleEngine(catalog=self.catalog)
        self.bridge = bridge or ExtractionBridge(catalog=self.catalog)
        self.history = history

    def check_facts(
        self,
        category_id: Optional[str],
        facts: Optional[Mapping[str, Any]] = None,
        photo_ref: Optional[str] = None,
    ) -> CheckResult:
        """
        Evaluates manually supplied facts.

        Missing facts are not asked for here; the engine applies the
        stricter band for them.
        """
        start_time = time.time()
        facts = dict(facts or {})
        category = self.catalog.get_category(category_id)

        verdict = self.engine.evaluate(category_id, facts)
        if category is None:
            logger.warning(f"Unknown category {category_id!r}, using fallback verdict")

        result = CheckResult(
            category=category,
            facts=facts,
            verdict=verdict,
            duration_ms=(time.time() - start_time) * 1000,
        )
        logger.info(
            f"Checked {category_id!r}: hand={verdict.hand_baggage.status.value} "
            f"checked={verdict.checked_baggage.status.value}"
        )
        self._maybe_save(result, photo_ref=photo_ref)
        return result

    def check_extraction(
        self,
        extraction: Any,
        category_id: Optional[str] = None,
        photo_ref: Optional[str] = None,
    ) -> CheckResult:
        """
        Processes classifier output.

        Args:
            extraction: Extraction or raw classifier payload
            category_id: Category chosen by the traveller (overrides the
                classifier's suggestion)
            photo_ref: Reference to the captured photo

        Returns:
            A verdict if the facts suffice, otherwise a session with
            pending questions, or a result asking for a category
        """
        start_time = time.time()
        extraction = as_extraction(extraction) or Extraction()

        warnings: List[str] = []
        if extraction.is_low_confidence:
            warnings.append(LOW_CONFIDENCE_WARNING)

        chosen_id = category_id or (extraction.category_id if extraction.identified else None)
        category = self.catalog.get_category(chosen_id)
        if category is None:
            logger.info(f"No usable category from classifier (suggested {extraction.category_id!r})")
            return CheckResult(
                warnings=tuple(warnings),
                summary=extraction.summary,
                error=extraction.error,
                duration_ms=(time.time() - start_time) * 1000,
            )

        facts = self.bridge.to_facts(category.id, extraction)

        if self.bridge.can_resolve_without_questions(category.id, extraction):
            verdict = self.engine.evaluate(category.id, facts)
            result = CheckResult(
                category=category,
                facts=facts,
                verdict=verdict,
                warnings=tuple(warnings),
                summary=extraction.summary,
                duration_ms=(time.time() - start_time) * 1000,
            )
            logger.info(f"Resolved {category.id!r} from classifier facts")
            self._maybe_save(result, photo_ref=photo_ref)
            return result

        logger.info(f"Classifier facts incomplete for {category.id!r}, questions needed")
        session = CheckSession(
            category=category,
            facts=dict(facts),
            extraction=extraction,
            include_optional=self.config.ask_optional_questions,
            catalog=self.catalog,
            photo_ref=photo_ref,
        )
        return CheckResult(
            category=category,
            facts=facts,
            session=session,
            warnings=tuple(warnings),
            summary=extraction.summary,
            duration_ms=(time.time() - start_time) * 1000,
        )

    def start_session(self, category_id: str, facts: Optional[Mapping[str, Any]] = None) -> CheckSession:
        """
        Starts a manual question session.

        Raises:
            KeyError: If the category is unknown
        """
        category = self.catalog.get_category(category_id)
        if category is None:
            raise KeyError(f"Unknown category: {category_id!r}")
        return CheckSession(
            category=category,
            facts=dict(facts or {}),
            include_optional=self.config.ask_optional_questions,
            catalog=self.catalog,
        )

    def finish(self, session: CheckSession) -> CheckResult:
        """
        Evaluates a session.

        Unanswered questions do not block evaluation; the engine treats
        those facts as absent.
        """
        if not session.is_ready:
            missing = [q.fact_key for q in session.pending_questions if q.required]
            logger.warning(f"Finishing {session.category.id!r} with unanswered questions: {missing}")

        extraction = session.extraction
        result = CheckResult(
            category=session.category,
            facts=dict(session.facts),
            verdict=self.engine.evaluate(session.category.id, session.facts),
            warnings=(LOW_CONFIDENCE_WARNING,) if extraction and extraction.is_low_confidence else (),
            summary=extraction.summary if extraction else None,
        )
        self._maybe_save(result, photo_ref=session.photo_ref)
        return result

    def _maybe_save(self, result: CheckResult, photo_ref: Optional[str] = None) -> None:
        if not self.config.save_history or self.history is None:
            return
        if result.verdict is None or result.category is None:
            return

        record = ScanRecord(
            category_id=result.category.id,
            category_name=result.category.name,
            facts=dict(result.facts),
            verdict=result.verdict,
            photo_ref=photo_ref,
            summary=result.summary,
        )
        try:
            self.history.save_record(record)
        except Exception as e:
            logger.error(f"Failed to save history record: {e}")
            raise
