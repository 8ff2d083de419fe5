"""
Execution Models

Defines Pydantic models for a single script run:
- Classified output lines (pass / fail / info / error)
- Per-run execution results and counters
- Tagged run outcomes (report vs. infrastructure failure)
- Run board status and summary
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class LineKind(str, Enum):
    """Kind of an output line produced by a run."""

    PASS = "pass"
    FAIL = "fail"
    INFO = "info"
    ERROR = "error"


class ClassifiedLine(BaseModel):
    """One notice (or the terminal execution error) of a run."""

    kind: LineKind = Field(..., description="Classification of the line")
    text: str = Field(..., description="Notice or error text")


class RunCounts(BaseModel):
    passes: int = Field(0, description="Notices classified as pass")
    failures: int = Field(0, description="Failed notices plus execution errors")


class ExecutionResult(BaseModel):
    """
    Verdict for one script run.

    Built fresh per run and never shared; `output` keeps the order in which the
    database emitted its notices, followed by the execution error if any.
    """

    success: bool = Field(True, description="False if any failure was recorded")
    output: List[ClassifiedLine] = Field(
        default_factory=list, description="Ordered output log"
    )
    counts: RunCounts = Field(default_factory=RunCounts)
    duration_ms: Optional[float] = Field(None, description="Wall-clock run time")

    def add_line(self, line: ClassifiedLine):
        """Append a line and update the counters/verdict."""
        self.output.append(line)
        if line.kind == LineKind.PASS:
            self.counts.passes += 1
        elif line.kind in (LineKind.FAIL, LineKind.ERROR):
            self.counts.failures += 1
            self.success = False


class RunReport(BaseModel):
    """The script was executed; `result` tells whether it passed."""

    status: Literal["completed"] = "completed"
    script: str
    result: ExecutionResult


class RunFailure(BaseModel):
    """The script could not be attempted (no pool, unknown script, ...)."""

    status: Literal["not_run"] = "not_run"
    script: Optional[str] = None
    code: str = Field(..., description="Error code, e.g. NOT_CONNECTED")
    message: str
    status_code: int = Field(500, description="HTTP status the API should use")


RunOutcome = Union[RunReport, RunFailure]


class RunStatus(str, Enum):
    """Board status of a script."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class RunSummary(BaseModel):
    total: int = 0
    pending: int = 0
    running: int = 0
    success: int = 0
    failed: int = 0
