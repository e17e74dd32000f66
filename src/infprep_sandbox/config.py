# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_MODULES = frozenset(
    {
        "math",
        "random",
        "fractions",
        "decimal",
        "statistics",
        "itertools",
        "functools",
        "collections",
        "string",
        "re",
    }
)


class SandboxConfig(BaseSettings):
    """
    Configuration for the problem sandbox and the code-editing assistant.
    """

    runtime: Literal["process", "thread"] = "process"
    execution_timeout_ms: float = Field(default=5000.0, gt=0)

    allowed_modules: set[str] = Field(default_factory=lambda: set(DEFAULT_ALLOWED_MODULES))
    max_output_bytes: int = 16 * 1024 * 1024

    # Patch protocol
    require_unique_match: bool = False

    # Assistant
    max_agent_steps: int = Field(default=50, ge=1)
    model: str = "gpt-4.1"
    available_models: list[str] = Field(default_factory=lambda: ["gpt-4.1", "gpt-5-mini"])
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("INFPREP_SANDBOX_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_base_url: str | None = None

    # Sessions
    idle_timeout: float = 1800.0  # 30 minutes
    reaper_interval: float = 60.0
    default_owner: str = "local"

    # Persistence
    problems_path: str | None = None

    enable_audit_logging: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_prefix="INFPREP_SANDBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
