from collections.abc import Sequence

from petition_scoring.classification.models import DocumentCategory
from petition_scoring.processor.models import CorpusFile

FILE_SEPARATOR = "\n\n---\n\n"
MISSING_TEXT_PLACEHOLDER = "[No text extracted]"
TRUNCATION_NOTICE = "\n\n[... Document truncated for processing ...]"
MAX_CORPUS_CHARS = 150_000


class CorpusAssembler:
    """Concatenates per-file text into one bounded evaluation corpus."""

    def __init__(self, max_chars: int = MAX_CORPUS_CHARS) -> None:
        self._max_chars = max_chars

    def assemble(self, files: Sequence[CorpusFile]) -> str:
        """Join header-tagged file blocks in the given order and enforce the length cap.

        A truncated corpus is exactly max_chars long plus the truncation notice.
        """
        content = FILE_SEPARATOR.join(self._block(f) for f in files)
        if len(content) > self._max_chars:
            return content[: self._max_chars] + TRUNCATION_NOTICE
        return content

    @staticmethod
    def is_truncated(corpus: str) -> bool:
        return corpus.endswith(TRUNCATION_NOTICE)

    @staticmethod
    def find_rfe_original(files: Sequence[CorpusFile]) -> str | None:
        """Text of the first file classified as an original RFE, if any."""
        for f in files:
            if f.category == DocumentCategory.RFE_ORIGINAL.value and f.text:
                return f.text
        return None

    @staticmethod
    def _block(file: CorpusFile) -> str:
        header = f"=== FILE: {file.category or 'Document'} ==="
        return f"{header}\n{file.text or MISSING_TEXT_PLACEHOLDER}"
