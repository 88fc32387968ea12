# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Turns raised errors into messages a calling model can act on."""

import json
import traceback
from typing import Any

from pydantic import BaseModel

from coreason_executor.exceptions import DispatchFailure, ExecutorError


class ErrorFields(BaseModel):
    message: str
    json_data: Any = None
    text: str | None = None


class RichError(BaseModel):
    message: str
    error: ErrorFields


def _error_fields(error: BaseException | Any) -> ErrorFields:
    if isinstance(error, ExecutorError):
        data: dict[str, Any] = {
            "type": type(error).__name__,
            "operation": error.operation,
            "arguments": error.arguments,
        }
        if error.cause is not None:
            data["cause"] = f"{type(error.cause).__name__}: {error.cause}"
        if isinstance(error, DispatchFailure):
            data["run"] = error.run.model_dump(mode="json")
        return ErrorFields(message=str(error), json_data=data, text=_format_traceback(error))

    if isinstance(error, BaseException):
        return ErrorFields(
            message=str(error) or type(error).__name__,
            json_data={"type": type(error).__name__},
            text=_format_traceback(error),
        )

    return ErrorFields(
        message=str(error),
        json_data=error,
        text=error if isinstance(error, str) else None,
    )


def _format_traceback(error: BaseException) -> str | None:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def get_rich_error(action: str, error: BaseException | Any, args: dict[str, Any] | None = None) -> RichError:
    """Build a descriptive message for a failed action.

    Args:
        action: What was being attempted, e.g. ``"write files to sandbox"``.
        error: The raised error (or any value thrown in its place).
        args: The parameters of the failed action.

    Returns:
        RichError: The combined message and the structured error fields.
    """
    fields = _error_fields(error)

    message = f"Error during {action}: {fields.message}"
    if args:
        message += f"\nParameters: {json.dumps(args, indent=2, default=str)}"
    if fields.json_data is not None:
        message += f"\nJSON: {json.dumps(fields.json_data, indent=2, default=str)}"
    if fields.text:
        message += f"\nText: {fields.text}"

    return RichError(message=message, error=fields)
