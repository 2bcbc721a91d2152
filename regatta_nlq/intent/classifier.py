"""Question classification (LLM when enabled, keyword rules otherwise)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from regatta_nlq.config.settings import Settings
from regatta_nlq.intent.llm_classifier import ClassificationError, LLMConfig, classify_via_llm
from regatta_nlq.intent.rules_classifier import RulesClassifierError
from regatta_nlq.intent.rules_classifier import classify as classify_rules
from regatta_nlq.intent.schema import QueryIntent, intent_from_obj

logger = logging.getLogger(__name__)

ClassifySource = Literal["llm", "rules"]


@dataclass(frozen=True)
class ClassifyResult:
    """Validated intent plus information about which classifier produced it."""

    intent: QueryIntent
    source: ClassifySource


def classify_question(text: str, *, settings: Settings) -> ClassifyResult:
    """Classify a question into a QueryIntent.

    Strategy:
        1) If `LLM_ENABLED` is set, the LLM classifies the question and its JSON is validated.
        2) Otherwise the deterministic keyword classifier is used.

    A failed LLM call is not retried with the keyword classifier: the question is answered
    from the source the operator configured or not at all.

    Raises:
        ClassificationError: If the configured classifier fails or its output is invalid.
    """

    if not text or not text.strip():
        raise ClassificationError("empty question")

    if settings.llm_enabled:
        config = LLMConfig.from_settings(settings)
        obj = classify_via_llm(text, config=config)
        try:
            intent = intent_from_obj(obj)
        except ValueError as exc:
            raise ClassificationError(f"invalid intent: {exc}") from exc
        logger.debug("classified source=llm query_type=%s", intent.query_type)
        return ClassifyResult(intent=intent, source="llm")

    try:
        intent = classify_rules(text)
    except RulesClassifierError as exc:
        raise ClassificationError(str(exc)) from exc
    logger.debug("classified source=rules query_type=%s", intent.query_type)
    return ClassifyResult(intent=intent, source="rules")
