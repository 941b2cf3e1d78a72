"""Deterministic keyword classifier for petition documents.

Rules are evaluated top to bottom and the first match wins. The RFE rule is
checked before the legal-document rule even though both vocabularies overlap
("petition"), so RFE phrasing always takes precedence.
"""

from dataclasses import dataclass
from typing import ClassVar

from petition_scoring.classification.models import DocumentCategory


@dataclass(frozen=True)
class _Rule:
    category: DocumentCategory
    filename_terms: tuple[str, ...] = ()
    text_terms: tuple[str, ...] = ()

    def matches(self, filename: str, text: str) -> bool:
        return any(term in filename for term in self.filename_terms) or any(
            term in text for term in self.text_terms
        )


class DocumentClassifier:
    """Pure function object: same (filename, text) always yields the same category."""

    _RFE_RULE: ClassVar[_Rule] = _Rule(
        category=DocumentCategory.RFE_ORIGINAL,
        filename_terms=("rfe",),
        text_terms=("request for evidence", "request for additional evidence"),
    )
    _RFE_RESPONSE_TERMS: ClassVar[tuple[str, ...]] = ("in response to", "response to rfe")

    _RULES: ClassVar[tuple[_Rule, ...]] = (
        _Rule(
            category=DocumentCategory.EXHIBIT,
            filename_terms=("exhibit", "evidence"),
        ),
        _Rule(
            category=DocumentCategory.CONTRACT,
            filename_terms=("contract", "agreement", "deal", "memo"),
            text_terms=("terms of employment", "compensation", "itinerary"),
        ),
        _Rule(
            category=DocumentCategory.SUPPORT_LETTER,
            filename_terms=("letter", "support"),
            text_terms=("to whom it may concern", "letter of support"),
        ),
        _Rule(
            category=DocumentCategory.AWARD,
            filename_terms=("award", "certificate"),
            text_terms=("certificate of", "award for"),
        ),
        _Rule(
            category=DocumentCategory.MEDIA,
            filename_terms=("article", "press", "media"),
            text_terms=("published", "newspaper", "magazine"),
        ),
        _Rule(
            category=DocumentCategory.LEGAL_DOCUMENT,
            filename_terms=("brief", "petition"),
            text_terms=("petitioner", "beneficiary", "8 cfr"),
        ),
    )

    def classify(self, filename: str, text: str | None) -> DocumentCategory:
        filename_lower = (filename or "").lower()
        text_lower = (text or "").lower()

        if self._RFE_RULE.matches(filename_lower, text_lower):
            if any(term in text_lower for term in self._RFE_RESPONSE_TERMS):
                return DocumentCategory.RFE_RESPONSE
            return DocumentCategory.RFE_ORIGINAL

        for rule in self._RULES:
            if rule.matches(filename_lower, text_lower):
                return rule.category
        return DocumentCategory.OTHER
