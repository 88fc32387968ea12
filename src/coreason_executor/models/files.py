# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from pydantic import BaseModel, Field


class FilePayload(BaseModel):
    """A file to push into a sandbox."""

    path: str = Field(..., description="Destination path inside the sandbox.")
    content: str = Field(..., description="Text content of the file.")
