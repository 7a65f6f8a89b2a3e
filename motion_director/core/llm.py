"""Gemini chat backend for the director turn loop"""

import logging
from typing import List, Dict, Any, Optional, Tuple, Union

from google import genai
from google.genai import types

from .config import (
    GEMINI_API_KEY, PROJECT_ID, LOCATION, USE_VERTEX_AI, DIRECTOR_MODEL, DIRECTOR_TEMPERATURE,
)
from .errors import BackendError
from .models import ModelTurn, ToolInvocation, ToolOutcome

logger = logging.getLogger(__name__)

# A message is user text, or the results of the previous tool batch
OutgoingMessage = Union[str, List[Tuple[ToolInvocation, ToolOutcome]]]


class ChatHandle:
    """Live conversation with the model; history is kept by the handle"""

    def send(self, message: OutgoingMessage, attachments: Optional[List[Tuple[bytes, str]]] = None) -> ModelTurn:
        raise NotImplementedError


class ModelBackend:
    """Starts conversations given system instructions and prior history"""

    def start_chat(self, system_instruction: str, history: Optional[List[Tuple[str, str]]] = None,
                   function_declarations: Optional[List[Dict[str, Any]]] = None) -> ChatHandle:
        raise NotImplementedError


class GeminiChatHandle(ChatHandle):

    def __init__(self, chat, model_name: str):
        self.chat = chat
        self.model_name = model_name

    def _build_parts(self, message: OutgoingMessage, attachments) -> List[types.Part]:
        if isinstance(message, str):
            parts = [types.Part.from_text(text=message)]
            for data, mime_type in attachments or []:
                parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
            return parts
        return [
            types.Part.from_function_response(name=invocation.name, response=outcome.to_model_response())
            for invocation, outcome in message
        ]

    def send(self, message: OutgoingMessage, attachments: Optional[List[Tuple[bytes, str]]] = None) -> ModelTurn:
        parts = self._build_parts(message, attachments)
        try:
            response = self.chat.send_message(parts)
        except Exception as e:
            raise BackendError(f"{type(e).__name__}: {e}") from e
        return self._extract_turn(response)

    def _extract_turn(self, response) -> ModelTurn:
        """Extract text and function calls from the first candidate"""
        response_text = ""
        tool_calls = []

        # Gemini can return a candidate with None content
        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            for part in response.candidates[0].content.parts:
                if getattr(part, "thought", False):
                    continue
                if part.function_call:
                    call = part.function_call
                    tool_calls.append(ToolInvocation(
                        name=call.name or "",
                        args=dict(call.args or {}),
                        call_id=getattr(call, "id", None),
                    ))
                elif part.text:
                    response_text += part.text
        else:
            finish_reason = response.candidates[0].finish_reason if response.candidates else None
            logger.warning(f"[Gemini] Empty response from {self.model_name} (finish_reason={finish_reason})")

        return ModelTurn(text=response_text, tool_calls=tool_calls)


class GeminiChatBackend(ModelBackend):
    """Gemini implementation using the google-genai SDK (API key or Vertex AI)"""

    model_name: str = DIRECTOR_MODEL
    gemini_configs: Dict = {
        'max_output_tokens': 8192,
        'temperature': DIRECTOR_TEMPERATURE,
    }
    use_vertex_ai: bool = USE_VERTEX_AI

    def __init__(self, **kwargs):
        """Initialize with custom parameters"""
        self.gemini_configs = dict(self.gemini_configs)
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
        self._client = None

    def setup_gemini(self):
        """Create the client lazily so importing this module needs no credentials"""
        if self._client is None:
            if self.use_vertex_ai:
                self._client = genai.Client(vertexai=True, project=PROJECT_ID, location=LOCATION)
            else:
                if not GEMINI_API_KEY:
                    raise BackendError("GEMINI_API_KEY is not set")
                self._client = genai.Client(api_key=GEMINI_API_KEY)
        return self._client

    def start_chat(self, system_instruction: str, history: Optional[List[Tuple[str, str]]] = None,
                   function_declarations: Optional[List[Dict[str, Any]]] = None) -> ChatHandle:
        client = self.setup_gemini()
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=[types.Tool(function_declarations=function_declarations)] if function_declarations else None,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
            **self.gemini_configs,
        )
        contents = [
            types.Content(role=role, parts=[types.Part.from_text(text=text)])
            for role, text in history or []
        ]
        chat = client.chats.create(model=self.model_name, config=config, history=contents)
        logger.info(f"[Gemini] Started chat on {self.model_name} with {len(contents)} history messages")
        return GeminiChatHandle(chat, self.model_name)


def get_llm(**kwargs) -> GeminiChatBackend:
    """Get Gemini chat backend instance

    Args:
        **kwargs: Configuration parameters passed to GeminiChatBackend

    Returns:
        GeminiChatBackend instance
    """
    # Accept 'model' as an alias for model_name
    model = kwargs.pop('model', None)
    if model:
        kwargs['model_name'] = model
    return GeminiChatBackend(**kwargs)
