# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """An already-authenticated principal. Credentials are verified upstream."""

    sub: str = Field(..., min_length=1, description="Stable subject identifier of the user.")
    email: str | None = None
    permissions: list[str] = Field(default_factory=list)
