from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict


class GeneratedScript(BaseModel):
    """Structured model output: a script and a prose description of it."""
    model_config = ConfigDict(populate_by_name=True)

    script: str = Field(..., description="Generated script.")
    description_of_script: str = Field(
        ..., alias="descriptionOfScript", description="Description of the generated script."
    )


def build_generation_schema(prompt: str) -> Dict[str, Any]:
    """
    JSON schema for the generation call. The task prompt travels as the
    schema description, so a new schema is built for every request.
    """
    return {
        "description": prompt,
        "type": "object",
        "properties": {
            "script": {"description": "Generated script.", "type": "string"},
            "descriptionOfScript": {"description": "Description of the generated script.", "type": "string"},
        },
        "required": ["script", "descriptionOfScript"],
        "additionalProperties": False,
    }
