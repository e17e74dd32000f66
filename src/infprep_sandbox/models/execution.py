# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ExecutionResult(BaseModel):
    """Represents the outcome of one sandbox run of a generator body.

    Attributes:
        output: Textual form of the return value. Empty when nothing was returned
            or the run failed.
        error: Failure message (syntax error, raised exception, timeout), or None.
        logs: Entries captured from the injected console, in call order.
        execution_time_ms: Wall-clock duration of the attempt, rounded to two decimals.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    output: str = ""
    error: str | None = None
    logs: list[str] = Field(default_factory=list)
    execution_time_ms: float = Field(default=0.0, ge=0)

    @property
    def succeeded(self) -> bool:
        return self.error is None
