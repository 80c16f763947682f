from __future__ import annotations

import functools
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import TypeAdapter

from quantura.core.errors import ERROR_STATUS, ErrorCode, describe
from quantura.core.result import Result


@functools.lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


# PUBLIC_INTERFACE
def error_response(code: ErrorCode, status_code: Optional[int] = None) -> JSONResponse:
    """Envelope for a failure, with the HTTP status mapped from the code."""
    return JSONResponse(
        status_code=status_code or ERROR_STATUS.get(code, 500),
        content={"data": None, "error": code.value, "message": describe(code)},
    )


# PUBLIC_INTERFACE
def envelope_response(result: Result, schema: Any = None, *, status_code: int = 200) -> JSONResponse:
    """
    Serialize a Result as the API envelope.

    On success `data` is validated against `schema` (reading ORM attributes)
    and dumped as JSON; on failure the error code decides the status.
    """
    if not result.is_ok:
        return error_response(result.error)
    data = result.data
    if schema is not None:
        adapter = _adapter(schema)
        data = adapter.dump_python(adapter.validate_python(data, from_attributes=True), mode="json")
    return JSONResponse(status_code=status_code, content={"data": data, "error": None, "message": None})
