# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import hashlib

from loguru import logger


class AuditLogger:
    """
    Writes an audit trail of sandbox executions and patch tool calls.
    Records are regular loguru records bound with ``audit=True``.
    """

    def __init__(self, service_name: str = "infprep-sandbox", enabled: bool = True):
        self.enabled = enabled
        self.logger = logger.bind(audit=True, service=service_name)

    def log_pre_execution(self, code: str, origin: str = "sandbox") -> str:
        """
        Log the code execution attempt. Returns a hash of the code.
        """
        code_hash = hashlib.sha256(code.encode("utf-8")).hexdigest()

        if self.enabled:
            self.logger.info(
                "SANDBOX_EXECUTION_START",
                origin=origin,
                code_hash=code_hash,
                code_length=len(code),
            )

        return code_hash

    def log_tool_call(self, name: str, call_id: str, is_error: bool) -> None:
        if self.enabled:
            self.logger.info("PATCH_TOOL_CALL", tool=name, call_id=call_id, is_error=is_error)
