"""
CarryOn Questions

Questions asked to the traveller when facts are missing, one per fact,
ordered per rule family. Answers are validated with the same rules the
engine uses to read facts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from carryon.core.catalog import DEFAULT_CATALOG, Category, CategoryCatalog, RuleFamily
from carryon.core.entities import FactValue
from carryon.core.facts import (
    BLADE_LENGTH_CM,
    CAPACITY_MAH,
    LIQUID_KIND,
    VOLTAGE_V,
    VOLUME_ML,
    find_spec,
    normalise_choice,
    parse_number,
    read_fact,
    resolve_energy,
)


class InvalidAnswerError(ValueError):
    """Raised when a traveller's answer cannot be used as a fact."""

    def __init__(self, question: "Question", raw: Any) -> None:
        self.question = question
        self.raw = raw
        super().__init__(f"Invalid answer for {question.fact_key!r}: {raw!r}")


@dataclass(frozen=True)
class Question:
    """
    A question that fills in one fact.

    Attributes:
        fact_key: Fact the answer is stored under
        text: Question text
        kind: "number" or "select"
        unit: Unit of a numeric answer
        placeholder: Example answer
        options: (label, value) pairs for a select question
        required: Whether the verdict needs this answer to be precise
    """
    fact_key: str
    text: str
    kind: str = "number"
    unit: str = ""
    placeholder: str = ""
    options: Tuple[Tuple[str, str], ...] = ()
    required: bool = True

    @property
    def option_values(self) -> Tuple[str, ...]:
        return tuple(value for _, value in self.options)


_CAPACITY = Question(
    fact_key=CAPACITY_MAH,
    text="What is the battery capacity in mAh?",
    unit="mAh",
    placeholder="e.g. 5000",
)
_VOLTAGE = Question(
    fact_key=VOLTAGE_V,
    text="What is the voltage?",
    unit="V",
    placeholder="e.g. 3.7",
)
_VOLUME = Question(
    fact_key=VOLUME_ML,
    text="What is the container volume in ml?",
    unit="ml",
    placeholder="e.g. 100",
)
_LIQUID_KIND = Question(
    fact_key=LIQUID_KIND,
    text="What type of liquid is it?",
    kind="select",
    options=(
        ("Regular liquid (cosmetics, drinks, etc.)", "regular"),
        ("Medication", "medication"),
        ("Baby food / special dietary food", "baby_food"),
        ("Duty-free purchase (sealed bag with receipt)", "duty_free"),
    ),
    required=False,
)
_BLADE = Question(
    fact_key=BLADE_LENGTH_CM,
    text="What is the blade length in cm?",
    unit="cm",
    placeholder="e.g. 5",
)
_TOOL = Question(
    fact_key=BLADE_LENGTH_CM,
    text="What is the tool or blade length in cm?",
    unit="cm",
    placeholder="e.g. 8",
)

FAMILY_QUESTIONS: Dict[RuleFamily, Tuple[Question, ...]] = {
    RuleFamily.ENERGY: (_CAPACITY, _VOLTAGE),
    RuleFamily.VOLUME: (_VOLUME, _LIQUID_KIND),
    RuleFamily.LENGTH: (_BLADE,),
    RuleFamily.STATIC: (),
}

# Per-category wording overrides
CATEGORY_QUESTIONS: Dict[str, Tuple[Question, ...]] = {
    "tools": (_TOOL,),
}


def _questions(category: Category) -> Tuple[Question, ...]:
    return CATEGORY_QUESTIONS.get(category.id, FAMILY_QUESTIONS[category.family])


def questions_for(
    category_id: Optional[str],
    catalog: Optional[CategoryCatalog] = None,
) -> Tuple[Question, ...]:
    """All questions for a category, in asking order. Empty if unknown."""
    category = (catalog or DEFAULT_CATALOG).get_category(category_id)
    if category is None:
        return ()
    return _questions(category)


def pending_questions(
    category_id: Optional[str],
    facts: Mapping[str, Any],
    include_optional: bool = True,
    catalog: Optional[CategoryCatalog] = None,
) -> List[Question]:
    """
    Questions whose fact is absent or malformed.

    Capacity and voltage are not asked when the energy is already known.
    """
    category = (catalog or DEFAULT_CATALOG).get_category(category_id)
    if category is None:
        return []

    if category.family == RuleFamily.ENERGY:
        energy, _ = resolve_energy(facts)
        if energy is not None:
            return []

    pending: List[Question] = []
    for question in _questions(category):
        if not question.required and not include_optional:
            continue
        spec = find_spec(category.family, question.fact_key)
        if spec is not None and read_fact(facts, spec).is_present:
            continue
        pending.append(question)
    return pending


def parse_answer(question: Question, raw: Any) -> FactValue:
    """
    Converts a raw answer into a fact value.

    Select questions accept either the option value or its 1-based
    position in the option list.

    Raises:
        InvalidAnswerError: If the answer is not usable
    """
    if question.kind == "select":
        value = normalise_choice(raw, question.option_values)
        if value is None and isinstance(raw, str) and raw.strip().isdigit():
            position = int(raw.strip())
            if 1 <= position <= len(question.options):
                value = question.options[position - 1][1]
        if value is None:
            raise InvalidAnswerError(question, raw)
        return value

    number = parse_number(raw)
    if number is None:
        raise InvalidAnswerError(question, raw)
    return number
