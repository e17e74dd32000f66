# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.runtime import SandboxRuntime
from infprep_sandbox.runtimes.process import SubprocessRuntime
from infprep_sandbox.runtimes.thread import ThreadRuntime


class SandboxFactory:
    """
    Factory to create SandboxRuntime instances based on configuration.
    """

    @staticmethod
    def get_runtime(config: SandboxConfig) -> SandboxRuntime:
        """
        Returns an instance of the configured SandboxRuntime.
        """
        if config.runtime == "process":
            return SubprocessRuntime(
                allowed_modules=config.allowed_modules,
                max_output_bytes=config.max_output_bytes,
            )
        elif config.runtime == "thread":
            return ThreadRuntime(allowed_modules=config.allowed_modules)
        else:
            # This should be unreachable due to Pydantic validation, but for safety:
            raise ValueError(f"Unknown runtime: {config.runtime}")  # pragma: no cover
