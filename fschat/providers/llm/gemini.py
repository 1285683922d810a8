"""
Gemini Generation Client for fschat.

Streams Gemini responses for a turn history and declares the registered
tools as function declarations.

Requirements:
- google-generativeai package
- a Gemini API key
"""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from fschat.conversation.turn import (
    Blob,
    CodeExecutionResult,
    ExecutableCode,
    FileData,
    FunctionCall,
    FunctionResponse,
    Part,
    Role,
    Text,
    Turn,
)
from fschat.conversation.value import struct_from_json

from .base import Candidate, FinishReason, GenerationChunk, GenerationError

logger = logging.getLogger(__name__)

# Gemini only knows user and model authors; tool results and client-sent
# system notes travel as user content.
_ROLE_MAP = {
    Role.USER: "user",
    Role.MODEL: "model",
    Role.TOOL: "user",
    Role.SYSTEM: "user",
}


def _schema_to_gemini(schema: Any) -> Any:
    """Gemini schemas spell JSON types in upper case."""
    if isinstance(schema, dict):
        converted = {}
        for key, value in schema.items():
            if key == "type" and isinstance(value, str):
                converted[key] = value.upper()
            else:
                converted[key] = _schema_to_gemini(value)
        return converted
    if isinstance(schema, list):
        return [_schema_to_gemini(v) for v in schema]
    return schema


def part_to_gemini(part: Part) -> dict[str, Any] | None:
    """Request dict for one part; None for an empty part."""
    data = part.data
    if data is None:
        return None
    if isinstance(data, Text):
        return {"text": data.text}
    if isinstance(data, Blob):
        return {"inline_data": {"mime_type": data.mime_type, "data": data.data}}
    if isinstance(data, FunctionCall):
        call: dict[str, Any] = {
            "name": data.name,
            "args": data.args.to_json() if data.args is not None else {},
        }
        if data.id:
            call["id"] = data.id
        return {"function_call": call}
    if isinstance(data, FunctionResponse):
        resp: dict[str, Any] = {
            "name": data.name,
            "response": data.response.to_json() if data.response is not None else {},
        }
        if data.id:
            resp["id"] = data.id
        return {"function_response": resp}
    if isinstance(data, FileData):
        return {"file_data": {"mime_type": data.mime_type, "file_uri": data.file_uri}}
    if isinstance(data, ExecutableCode):
        return {"executable_code": {"language": data.language, "code": data.code}}
    if isinstance(data, CodeExecutionResult):
        return {"code_execution_result": {"outcome": data.outcome, "output": data.output}}
    raise TypeError(f"Unknown part payload: {type(data).__name__}")


def turns_to_contents(history: Sequence[Turn]) -> list[dict[str, Any]]:
    """Convert the turn history into Gemini request contents."""
    contents = []
    for turn in history:
        parts = [p for p in (part_to_gemini(part) for part in turn.parts) if p is not None]
        if not parts:
            continue
        contents.append({"role": _ROLE_MAP[turn.role], "parts": parts})
    return contents


def part_from_gemini(data: dict[str, Any]) -> Part:
    """Parse one part of a Gemini response (proto converted to dict)."""
    if "text" in data:
        return Part(Text(data["text"]))
    if "inline_data" in data:
        blob = data["inline_data"]
        raw = blob.get("data", b"")
        if isinstance(raw, str):
            raw = base64.b64decode(raw)
        return Part(Blob(mime_type=blob.get("mime_type", ""), data=raw))
    if "function_call" in data:
        call = data["function_call"]
        args = call.get("args")
        return Part(
            FunctionCall(
                id=call.get("id", "") or "",
                name=call.get("name", ""),
                args=struct_from_json(args) if args is not None else None,
            )
        )
    if "function_response" in data:
        resp = data["function_response"]
        payload = resp.get("response")
        return Part(
            FunctionResponse(
                id=resp.get("id", "") or "",
                name=resp.get("name", ""),
                response=struct_from_json(payload) if payload is not None else None,
            )
        )
    if "file_data" in data:
        ref = data["file_data"]
        return Part(FileData(mime_type=ref.get("mime_type", ""), file_uri=ref.get("file_uri", "")))
    if "executable_code" in data:
        code = data["executable_code"]
        return Part(ExecutableCode(language=int(code.get("language", 0)), code=code.get("code", "")))
    if "code_execution_result" in data:
        result = data["code_execution_result"]
        return Part(
            CodeExecutionResult(
                outcome=int(result.get("outcome", 0)),
                output=result.get("output", ""),
            )
        )
    return Part()


def _message_to_dict(message: Any) -> dict[str, Any]:
    """proto-plus message -> dict with snake_case keys."""
    if isinstance(message, dict):
        return message
    return type(message).to_dict(
        message,
        preserving_proto_field_name=True,
        use_integers_for_enums=True,
    )


def chunk_from_response(response: Any) -> GenerationChunk:
    """Convert one streamed Gemini response into a GenerationChunk."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return GenerationChunk()

    first = candidates[0]
    finish_reason = int(getattr(first, "finish_reason", FinishReason.UNSPECIFIED) or 0)

    content = getattr(first, "content", None)
    turn = None
    if content is not None:
        raw = _message_to_dict(content)
        raw_parts = raw.get("parts") or []
        if raw_parts:
            turn = Turn.model([part_from_gemini(p) for p in raw_parts])

    return GenerationChunk(candidate=Candidate(finish_reason=finish_reason, content=turn))


class GeminiGenerationClient:
    """
    Google Gemini streaming client.

    Uses google-generativeai's async streaming API and declares the
    given function declarations as the model's tools.
    """

    DEFAULT_SAFETY_SETTINGS = [
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
    ]

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-pro",
        function_declarations: list[dict[str, Any]] | None = None,
        safety_settings: list[dict[str, str]] | None = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Google AI API key
            model: Model to use
            function_declarations: Tool declarations exposed to the model
            safety_settings: Custom safety settings (relaxed defaults if None)
        """
        self._api_key = api_key
        self._model_name = model
        self._declarations = function_declarations or []
        self._safety_settings = safety_settings or self.DEFAULT_SAFETY_SETTINGS
        self._genai = None  # Lazy initialization
        self._model: Any = None

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model_name

    def _configure_genai(self):
        """Configure the generativeai module."""
        if self._genai is None:
            try:
                import google.generativeai as genai

                genai.configure(api_key=self._api_key)
                self._genai = genai
            except ImportError:
                raise ImportError(
                    "google-generativeai package is required for Gemini. "
                    "Install with: pip install google-generativeai"
                )
        return self._genai

    def _get_model(self) -> Any:
        if self._model is None:
            genai = self._configure_genai()
            model_config: dict[str, Any] = {"safety_settings": self._safety_settings}
            if self._declarations:
                # Response schemas stay local; the request proto has no slot for them.
                declarations = [
                    {k: v for k, v in d.items() if k != "response"} for d in self._declarations
                ]
                model_config["tools"] = [
                    {"function_declarations": _schema_to_gemini(declarations)}
                ]
            self._model = genai.GenerativeModel(self._model_name, **model_config)
        return self._model

    async def stream_generate(self, history: Sequence[Turn]) -> AsyncIterator[GenerationChunk]:
        contents = turns_to_contents(history)
        logger.debug(
            f"Gemini stream: model={self._model_name}, contents={len(contents)}"
        )

        try:
            model = self._get_model()
            response = await model.generate_content_async(contents, stream=True)
        except Exception as e:
            logger.error(f"Gemini request error: {e}")
            raise GenerationError(str(e)) from e

        return self._iterate(response)

    async def _iterate(self, response: Any) -> AsyncIterator[GenerationChunk]:
        try:
            async for chunk in response:
                yield chunk_from_response(chunk)
        except Exception as e:
            logger.error(f"Gemini stream error: {e}")
            raise GenerationError(str(e)) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', model='{self._model_name}')"


__all__ = [
    "GeminiGenerationClient",
    "chunk_from_response",
    "part_from_gemini",
    "part_to_gemini",
    "turns_to_contents",
]
