"""
Classes to model API response objects
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field  # pylint: disable=no-name-in-module


class ApiResponseDto(BaseModel):
    detail: Any = Field(...)

    model_config = ConfigDict(json_schema_extra={"example": {"detail": "Api response details"}})


class ApiErrorResponseDto(ApiResponseDto):
    model_config = ConfigDict(json_schema_extra={"example": {"detail": "Api error details"}})
