from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from petition_scoring.database.models import FileRecord, SessionRecord
from petition_scoring.processor.models import ScoringJob
from petition_scoring.processor.progress import ProgressSink
from petition_scoring.scoring.models import ScoringResult


@dataclass(slots=True)
class PipelineContext:
    job: ScoringJob
    progress: ProgressSink
    session: SessionRecord | None = None
    files: list[FileRecord] = field(default_factory=list)
    corpus: str = ""
    rfe_original_content: str | None = None
    result: ScoringResult | None = None
    error_message: str = ""


class PipelineStep(ABC):
    name: str = "step"

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
