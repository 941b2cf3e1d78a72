from enum import Enum


class DocumentCategory(str, Enum):
    """Semantic category assigned to an extracted document."""

    RFE_ORIGINAL = "rfe_original"
    RFE_RESPONSE = "rfe_response"
    EXHIBIT = "exhibit"
    CONTRACT = "contract"
    SUPPORT_LETTER = "support_letter"
    AWARD = "award"
    MEDIA = "media"
    LEGAL_DOCUMENT = "legal_document"
    OTHER = "other"
