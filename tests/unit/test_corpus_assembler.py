from petition_scoring.processor.corpus_assembler import (
    FILE_SEPARATOR,
    MISSING_TEXT_PLACEHOLDER,
    TRUNCATION_NOTICE,
    CorpusAssembler,
)
from petition_scoring.processor.models import CorpusFile


class TestAssemble:
    def test_formats_blocks_in_order(self) -> None:
        files = [
            CorpusFile(category="support_letter", text="Letter body"),
            CorpusFile(category="award", text="Award body"),
        ]

        corpus = CorpusAssembler().assemble(files)

        assert corpus == (
            "=== FILE: support_letter ===\nLetter body"
            + FILE_SEPARATOR
            + "=== FILE: award ===\nAward body"
        )

    def test_missing_category_and_text(self) -> None:
        corpus = CorpusAssembler().assemble([CorpusFile(category=None, text=None)])
        assert corpus == f"=== FILE: Document ===\n{MISSING_TEXT_PLACEHOLDER}"

    def test_empty_file_list(self) -> None:
        assert CorpusAssembler().assemble([]) == ""

    def test_deterministic(self) -> None:
        files = [CorpusFile(category="media", text="x" * 50) for _ in range(3)]
        assembler = CorpusAssembler()
        assert assembler.assemble(files) == assembler.assemble(list(files))


class TestTruncation:
    def test_under_cap_untouched(self) -> None:
        assembler = CorpusAssembler(max_chars=1000)
        corpus = assembler.assemble([CorpusFile(category="other", text="short")])
        assert not assembler.is_truncated(corpus)

    def test_over_cap_is_cut_and_marked(self) -> None:
        assembler = CorpusAssembler(max_chars=100)
        corpus = assembler.assemble([CorpusFile(category="other", text="y" * 500)])
        assert len(corpus) == 100 + len(TRUNCATION_NOTICE)
        assert corpus.endswith(TRUNCATION_NOTICE)
        assert corpus.startswith("=== FILE: other ===\n")
        assert assembler.is_truncated(corpus)

    def test_default_cap(self) -> None:
        corpus = CorpusAssembler().assemble([CorpusFile(category="other", text="z" * 200_000)])
        assert len(corpus) == 150_000 + len(TRUNCATION_NOTICE)


class TestFindRfeOriginal:
    def test_returns_first_rfe_original(self) -> None:
        files = [
            CorpusFile(category="exhibit", text="e"),
            CorpusFile(category="rfe_original", text="first notice"),
            CorpusFile(category="rfe_original", text="second notice"),
        ]
        assert CorpusAssembler.find_rfe_original(files) == "first notice"

    def test_none_when_absent(self) -> None:
        assert CorpusAssembler.find_rfe_original([CorpusFile("award", "a")]) is None
