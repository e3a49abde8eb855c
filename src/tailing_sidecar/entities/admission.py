"""
Models of the `admission.k8s.io/v1` AdmissionReview envelope
"""

import base64
import json
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tailing_sidecar.common.error_types import ApplicationError

ADMISSION_API_VERSION: Final = "admission.k8s.io/v1"
ADMISSION_KIND: Final = "AdmissionReview"
JSON_PATCH_TYPE: Final = "JSONPatch"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdmissionStatus(_CamelModel):
    code: int
    message: str


class AdmissionRequest(_CamelModel):
    uid: str
    kind: dict[str, str] | None = None
    namespace: str | None = None
    name: str | None = None
    operation: str | None = None
    # Left untyped: decoding the Pod is part of the request handling
    obj: Any = Field(default=None, alias="object")


class AdmissionResponse(_CamelModel):
    uid: str
    allowed: bool
    status: AdmissionStatus | None = None
    patch: str | None = None
    patch_type: str | None = None


class AdmissionReview(_CamelModel):
    api_version: str = ADMISSION_API_VERSION
    kind: str = ADMISSION_KIND
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None


def allowed(uid: str) -> AdmissionResponse:
    """Admit the object unchanged"""
    return AdmissionResponse(uid=uid, allowed=True)


def patched(uid: str, operations: list[dict[str, Any]]) -> AdmissionResponse:
    """Admit the object with the given RFC 6902 operations.
    An empty list of operations admits the object unchanged."""
    if not operations:
        return allowed(uid)
    patch = base64.b64encode(json.dumps(operations).encode("utf-8")).decode("utf-8")
    return AdmissionResponse(uid=uid, allowed=True, patch=patch, patch_type=JSON_PATCH_TYPE)


def errored(uid: str, error: ApplicationError) -> AdmissionResponse:
    """Reject the object, reporting the error's status code"""
    return AdmissionResponse(
        uid=uid, allowed=False, status=AdmissionStatus(code=error.status_code, message=error.message)
    )
