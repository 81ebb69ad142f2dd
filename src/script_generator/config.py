from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
import yaml
from pathlib import Path
from typing import Union

from .schemas.run_config import RunConfig

class Settings(BaseSettings):
    OPENAI_API_KEY: str = Field("", description="OpenAI API Key")
    MODEL: str = Field("gpt-4o", description="Default model for script generation")
    STACKEXCHANGE_ACCESS_TOKEN: str = Field("", description="Stack Exchange API access token")
    STACKEXCHANGE_KEY: str = Field("", description="Stack Exchange API application key")
    STACKEXCHANGE_API_URL: str = "https://api.stackexchange.com/2.3/search/advanced"
    # Response filter limiting items to title, link, body and answers (body, is_accepted)
    STACKEXCHANGE_FILTER: str = "!-tS9_NPV1puxkptfqnI5"
    HTTP_TIMEOUT: float = 30.0
    IMAGE_WIDTH: int = 1000
    OUTPUT_DIR: str = Field("./output", description="Directory for exported evidence PDFs")
    WORKSPACE_DIR: str = Field("./.workspace", description="Scratch directory for editable documents")
    LOG_LEVEL: str = "INFO"

    # MLflow settings
    MLFLOW_TRACKING_URI: str = Field("http://127.0.0.1:5000", description="MLflow tracking server URI")
    MLFLOW_ENABLE_TRACING: bool = Field(False, description="Enable MLflow tracing")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()

def load_run_config(path: Union[str, Path]) -> RunConfig:
    """
    Reads a YAML run file with `generation`, `evidence_search` and
    `other_sources` sections. Missing sections disable that source.
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return RunConfig.model_validate(data)
