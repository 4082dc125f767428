from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional


class ProcessingMode(str, Enum):
    FULL = "FULL"
    NOTES_ONLY = "NOTES_ONLY"
    TRANSCRIPT_ONLY = "TRANSCRIPT_ONLY"


class JobState(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class JobSubmission(BaseModel):
    """Body of POST /jobs (submission trigger). Field aliases match the capture client's camelCase JSON.
    Why available: Carries everything the orchestrator needs to drain chunks, upload, and pick a model."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId", min_length=1, description="Caller-supplied unique job id")
    total_chunks: int = Field(..., alias="totalChunks", ge=0)
    mime_type: str = Field(..., alias="mimeType", min_length=1)
    mode: ProcessingMode = Field(ProcessingMode.FULL)
    model: Optional[str] = Field(None, description="Requested model id (defaults to config DEFAULT_MODEL)")
    file_size: int = Field(..., alias="fileSize", ge=0, description="Declared total bytes across all chunks")

    @field_validator("mode", mode="before")
    @classmethod
    def accept_all_alias(cls, v):
        """The recorder UI sends "ALL" for the full transcript + notes mode."""
        if isinstance(v, str) and v.strip().upper() == "ALL":
            return ProcessingMode.FULL
        return v

    @field_validator("job_id")
    @classmethod
    def job_id_is_path_safe(cls, v):
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("jobId must not contain path separators")
        return v


class JobAcceptedResponse(BaseModel):
    """Response for POST /jobs: the job is queued; poll GET /jobs/{job_id}."""

    job_id: str
    status: JobState = JobState.PENDING


class ChunkStoredResponse(BaseModel):
    job_id: str
    index: int = Field(..., ge=0)
    bytes_stored: int = Field(..., ge=0)


class ResultRecord(BaseModel):
    """Terminal record in the result store: {status: COMPLETED, result} or {status: ERROR, error}."""

    status: JobState
    result: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def terminal_shape(self):
        if self.status == JobState.COMPLETED and self.result is None:
            raise ValueError("COMPLETED record requires result")
        if self.status == JobState.ERROR and self.error is None:
            raise ValueError("ERROR record requires error")
        if self.status == JobState.PENDING:
            raise ValueError("PENDING is not a terminal status")
        return self

    @classmethod
    def completed(cls, result: str) -> "ResultRecord":
        return cls(status=JobState.COMPLETED, result=result)

    @classmethod
    def failed(cls, error: str) -> "ResultRecord":
        return cls(status=JobState.ERROR, error=error)


class JobStatusResponse(BaseModel):
    """Response for GET /jobs/{job_id}: PENDING until the orchestrator writes a terminal record."""

    job_id: str
    status: JobState
    result: Optional[str] = None
    error: Optional[str] = None


class MeetingData(BaseModel):
    """Structured output of the generation step. Why available: Fixed schema the model is instructed to return."""

    model_config = ConfigDict(populate_by_name=True)

    transcription: str = ""
    summary: str = ""
    conclusions: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list, alias="actionItems")


class MeetingResponse(BaseModel):
    """Response for GET /jobs/{job_id}/meeting: parsed meeting data plus markdown renderings."""

    job_id: str
    meeting: MeetingData
    transcription_markdown: str
    notes_markdown: str


class LimitsResponse(BaseModel):
    """Response for GET /limits: pipeline limits. Why available: Lets the capture client size chunks and show expected wait times."""

    upload_block_bytes: int = Field(..., description="Resumable upload block size in bytes")
    poll_interval_seconds: float = Field(..., description="Seconds between readiness polls")
    poll_max_attempts: int = Field(..., description="Readiness polls before timing out")
    generation_max_retries: int = Field(..., description="Retries per model on overload/rate limit")
    default_model: str
    models: List[str] = Field(default_factory=list, description="Models with a configured fallback chain")
