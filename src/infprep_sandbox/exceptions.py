# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Error taxonomy shared by the sandbox, the patch protocol and the stores."""


class SandboxError(Exception):
    """Base class for errors raised by infprep-sandbox."""


class PatchApplicationError(SandboxError):
    """A patch operation's precondition failed; the buffer was not modified."""


class NotFoundError(SandboxError):
    """The requested problem does not exist or is not owned by the caller."""
