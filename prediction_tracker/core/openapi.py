"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tags metadata and documents the
abuse-mitigation responses shared by every /api operation. This keeps
documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Predictions",
        "description": "Submit predictions, attach verifications and browse them.",
    },
    {
        "name": "Stats",
        "description": "Aggregate outcome, category and per-predictor accuracy statistics.",
    },
    {
        "name": "Health",
        "description": "Liveness check.",
    },
]

GUARD_RESPONSES: Dict[str, Dict[str, str]] = {
    "400": {"description": "Validation failed; details.errors lists every problem."},
    "403": {"description": "Request flagged as automated (bot, honeypot or IP filter)."},
    "429": {"description": "Rate limit exceeded; see the Retry-After header."},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and guard responses.

    - Adds tags metadata if not present
    - Documents 400/403/429 on every /api operation, and 413 on submissions
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if not path.startswith("/api/"):
                continue
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                for code, response in GUARD_RESPONSES.items():
                    responses.setdefault(code, response)
                if method == "post":
                    responses.setdefault("413", {"description": "Request body too large."})

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
