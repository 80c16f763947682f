import json
import os

from quantura.api.main import app
from quantura.core.errors import ERROR_STATUS, describe

# All REST routes are under /api/v1
openapi_schema = app.openapi()

# Document the envelope error codes alongside the schema
openapi_schema["x-error-codes"] = [
    {"code": code.value, "status": status, "message": describe(code)}
    for code, status in ERROR_STATUS.items()
]

output_dir = "interfaces"
os.makedirs(output_dir, exist_ok=True)
output_path = os.path.join(output_dir, "openapi.json")

with open(output_path, "w") as f:
    json.dump(openapi_schema, f, indent=2)
