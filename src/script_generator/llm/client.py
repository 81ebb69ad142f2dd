"""OpenAI client wrapper for schema-constrained script generation.

Uploads evidence PDFs as user files, attaches them to a single chat
request and forces the reply into the generation JSON schema.
"""

from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI
from pydantic import ValidationError

from ..config import get_settings
from ..errors import ConfigurationError, SchemaValidationError
from ..log import get_logger
from ..schemas.evidence import EvidenceDocument
from ..schemas.outputs import GeneratedScript

settings = get_settings()
logger = get_logger("llm")

RESPONSE_SCHEMA_NAME = "generated_script"


class LLMClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client: Optional[OpenAI] = None):
        self.model = model or settings.MODEL
        if not self.model:
            raise ConfigurationError("No model configured for script generation")
        self.client = client or OpenAI(api_key=api_key or settings.OPENAI_API_KEY or None)

    def upload_files(self, documents: Sequence[EvidenceDocument], file_ids: Optional[List[str]] = None) -> List[str]:
        """
        Upload each document and return the file ids. Ids are appended to
        `file_ids` as they are created, so a caller-supplied list still holds
        the earlier uploads if a later one fails.
        """
        file_ids = [] if file_ids is None else file_ids
        for document in documents:
            uploaded = self.client.files.create(
                file=(document.filename, document.content, document.mime_type),
                purpose="user_data",
            )
            logger.debug(f"Uploaded {document.name} as {uploaded.id}")
            file_ids.append(uploaded.id)
        return file_ids

    def delete_files(self, file_ids: Sequence[str]) -> None:
        for file_id in file_ids:
            self.client.files.delete(file_id)

    def generate_content(self, json_schema: Dict[str, Any], file_ids: Optional[Sequence[str]] = None) -> GeneratedScript:
        """
        The schema description is the instruction; it is also sent as the
        user text so the attachments have something to refer to.
        Raises SchemaValidationError when the reply does not fit the schema.
        """
        content: List[Dict[str, Any]] = [
            {"type": "file", "file": {"file_id": file_id}} for file_id in (file_ids or [])
        ]
        content.append({"type": "text", "text": json_schema.get("description", "")})

        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": content}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": RESPONSE_SCHEMA_NAME, "schema": json_schema, "strict": True},
            },
        )
        raw = completion.choices[0].message.content
        try:
            return GeneratedScript.model_validate_json(raw or "")
        except ValidationError as e:
            raise SchemaValidationError(f"Model response does not match the schema: {e}", raw=raw) from e

    def generate_with_files(self, json_schema: Dict[str, Any], documents: Sequence[EvidenceDocument]) -> GeneratedScript:
        """Upload `documents`, generate against them, then delete the uploads."""
        file_ids: List[str] = []
        try:
            self.upload_files(documents, file_ids)
            return self.generate_content(json_schema, file_ids=file_ids)
        finally:
            self.delete_files(file_ids)
