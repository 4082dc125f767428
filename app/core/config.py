import os
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()


class Settings(BaseModel):
    """Pipeline settings loaded from environment: Gemini API key and base URL, model names, upload block size, polling and retry limits, storage backend, and prompt version.
    Why available: Single source of configuration so the upload client, poller, invoker and API all use consistent limits."""
    api_key: str = os.getenv("API_KEY", os.getenv("GEMINI_API_KEY", ""))
    gemini_api_base: str = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com")
    default_model: str = os.getenv("DEFAULT_MODEL", "gemini-2.5-flash")
    preflight_model: str = os.getenv("PREFLIGHT_MODEL", "gemini-2.5-flash")
    upload_block_bytes: int = int(os.getenv("UPLOAD_BLOCK_BYTES", str(8 * 1024 * 1024)))  # 8 MiB
    poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "2"))
    poll_max_attempts: int = int(os.getenv("POLL_MAX_ATTEMPTS", "60"))
    generation_max_retries: int = int(os.getenv("GENERATION_MAX_RETRIES", "2"))
    retry_base_delay_seconds: float = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "1"))
    max_output_tokens: int = int(os.getenv("MAX_OUTPUT_TOKENS", "8192"))
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))
    store_backend: str = os.getenv("STORE_BACKEND", "memory")  # memory | file
    data_root: str = os.getenv("DATA_ROOT", os.path.join(os.getcwd(), "data"))
    model_chains_file: str = os.getenv("MODEL_CHAINS_FILE", "")
    prompt_version: str = os.getenv("PROMPT_VERSION", "v1")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @field_validator("upload_block_bytes", "poll_max_attempts", "max_output_tokens")
    @classmethod
    def must_be_positive(cls, v):
        """Ensure block size, poll attempts and output token limit are positive integers. Prevents invalid config from env."""
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("poll_interval_seconds", "retry_base_delay_seconds", "generation_max_retries")
    @classmethod
    def must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("store_backend")
    @classmethod
    def known_backend(cls, v):
        v = (v or "").strip().lower()
        if v not in ("memory", "file"):
            raise ValueError("must be 'memory' or 'file'")
        return v


settings = Settings()
