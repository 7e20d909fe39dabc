"""
This module provides a helper class for interacting with the Google Gemini API.

It sends asynchronous generation requests, retries the calls refused because
the model is overloaded (HTTP 429/503), and parses JSON answers into
dictionaries. Model settings come from the configuration unless the
administrators activated an LLM configuration in the database.
"""

import asyncio
import json
from typing import Any, Dict, Iterator, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from backend.app.configs.config_singleton import get_config
from backend.app.configs.gemini_config import (
    STRUCTURED_PROMPT_TEMPLATE,
    STRUCTURED_SYSTEM_INSTRUCTION,
    SYSTEM_INSTRUCTION,
)
from backend.app.utils.helpers.gemini_usage_manager import gemini_usage_manager
from backend.app.utils.logging.logger import log_error, log_info, log_warning
from backend.app.utils.system_utils.exceptions import AIServiceUnavailableError, BusinessRuleError

# Providers served by this helper when an LLM configuration is active.
GEMINI_PROVIDERS = ("google", "gemini")
# HTTP statuses meaning the model is temporarily overloaded.
RETRYABLE_STATUS_CODES = (429, 503)
OVERLOAD_MARKERS = ("overloaded", "surchargé")


class GeminiHelper:
    """
    GeminiHelper wraps the google-generativeai client.

    The client is configured lazily on the first request so that the
    application starts, and answers with 503 on AI routes, when no API key is
    set.
    """

    def __init__(self):
        self.api_key = get_config("gemini_api_key")
        self.model_name = get_config("gemini_model_name") or "gemini-2.0-flash"
        self.temperature = get_config("gemini_temperature", 0.7)
        self.max_output_tokens = get_config("gemini_max_output_tokens", 4000)
        self._configured = False

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _ensure_configured(self) -> None:
        if not self.api_key:
            log_error("[LLM] Gemini API key is missing, set GEMINI_API_KEY")
            raise AIServiceUnavailableError("Service IA non configuré")
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True
            log_info(f"[LLM] Gemini client configured with model '{self.model_name}'")

    def resolve_settings(self, llm_config: Optional[Any] = None) -> Dict[str, Any]:
        """
        Pick the generation settings to use for a call.

        Args:
            llm_config: The active LlmConfiguration row, if any.

        Returns:
            A dict with model_name, temperature and max_output_tokens.
        """
        settings = {
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
        }
        if llm_config is None:
            return settings
        if (llm_config.provider or "").lower() not in GEMINI_PROVIDERS:
            log_warning(f"[LLM] Provider '{llm_config.provider}' is not supported, Gemini defaults used")
            return settings
        settings["model_name"] = llm_config.model_name or self.model_name
        try:
            settings["temperature"] = float(llm_config.temperature)
        except (TypeError, ValueError):
            log_warning(f"[LLM] Invalid temperature '{llm_config.temperature}' in configuration {llm_config.id}")
        if llm_config.max_tokens:
            settings["max_output_tokens"] = llm_config.max_tokens
        return settings

    @staticmethod
    def is_retryable_error(error: Exception) -> bool:
        """
        Tell whether an error means the model is overloaded.

        Args:
            error: The exception raised by the client.

        Returns:
            True for HTTP 429/503 answers or overload messages.
        """
        if isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.ServiceUnavailable)):
            return True
        for attr in ("code", "status", "status_code"):
            value = getattr(error, attr, None)
            if value in RETRYABLE_STATUS_CODES or str(value) in ("429", "503"):
                return True
        message = str(error).lower()
        return any(marker in message for marker in OVERLOAD_MARKERS)

    @staticmethod
    def _response_text(response: Any) -> str:
        if response is None:
            return ""
        try:
            return (response.text or "").strip()
        except ValueError:
            # The client raises when the answer was blocked and holds no text part.
            log_warning("[LLM] Gemini answer holds no text part")
            return ""

    async def send_request(
            self,
            prompt: str,
            system_instruction: Optional[str] = None,
            json_mode: bool = False,
            settings: Optional[Dict[str, Any]] = None,
            operation: str = "generation",
    ) -> str:
        """
        Send a prompt to Gemini, retrying while the model is overloaded.

        Args:
            prompt: The full prompt.
            system_instruction: System instruction; the generic one when omitted.
            json_mode: Ask the model for an application/json answer.
            settings: Settings from `resolve_settings`.
            operation: Name of the calling operation, for logs and usage tracking.

        Returns:
            The stripped answer text, "" when the model answered nothing.

        Raises:
            AIServiceUnavailableError: Without API key or when every attempt was refused for overload.
        """
        self._ensure_configured()
        settings = settings or self.resolve_settings()
        max_attempts = max(1, int(get_config("llm_max_retries", 2)))
        retry_delay = float(get_config("llm_retry_delay", 3.0))
        generation_config = {
            "temperature": settings["temperature"],
            "max_output_tokens": settings["max_output_tokens"],
        }
        if json_mode:
            generation_config["response_mime_type"] = "application/json"
        model = genai.GenerativeModel(
            settings["model_name"],
            system_instruction=system_instruction or SYSTEM_INSTRUCTION,
            generation_config=generation_config,
        )

        await gemini_usage_manager.acquire_request_slot(operation)
        try:
            for attempt in range(1, max_attempts + 1):
                try:
                    response = await asyncio.to_thread(model.generate_content, prompt)
                except Exception as e:
                    if not self.is_retryable_error(e):
                        raise
                    log_warning(f"[LLM] {operation}: model overloaded (attempt {attempt}/{max_attempts}): {e}")
                    if attempt < max_attempts:
                        await asyncio.sleep(retry_delay)
                    continue
                text = self._response_text(response)
                if not text:
                    log_warning(f"[LLM] {operation}: empty answer from Gemini")
                log_info(f"[LLM] {operation}: answer received on attempt {attempt}")
                return text
        finally:
            await gemini_usage_manager.release_request_slot()

        log_error(f"[LLM] {operation}: giving up after {max_attempts} attempts")
        raise AIServiceUnavailableError(
            "Service IA temporairement surchargé. Veuillez réessayer dans quelques instants."
        )

    async def generate_text(
            self,
            prompt: str,
            system_instruction: Optional[str] = None,
            settings: Optional[Dict[str, Any]] = None,
            operation: str = "generation",
    ) -> str:
        return await self.send_request(prompt, system_instruction, False, settings, operation)

    async def generate_structured(
            self,
            prompt: str,
            schema: Dict[str, Any],
            context: Optional[Dict[str, Any]] = None,
            settings: Optional[Dict[str, Any]] = None,
            operation: str = "structured_generation",
    ) -> Dict[str, Any]:
        """
        Ask for a JSON answer following a schema.

        Args:
            prompt: The task description.
            schema: Example of the expected JSON shape, embedded in the prompt.
            context: Extra data, JSON-dumped into the prompt.
            settings: Settings from `resolve_settings`.
            operation: Name of the calling operation.

        Returns:
            The parsed JSON object.

        Raises:
            BusinessRuleError: If the answer holds no JSON object.
        """
        full_prompt = STRUCTURED_PROMPT_TEMPLATE.format(
            prompt=prompt,
            schema=json.dumps(schema, ensure_ascii=False),
            context=json.dumps(context or {}, ensure_ascii=False, default=str),
        )
        raw = await self.send_request(
            full_prompt, STRUCTURED_SYSTEM_INSTRUCTION, True, settings, operation
        )
        parsed = self.parse_response(raw)
        if not isinstance(parsed, dict):
            log_error(f"[LLM] {operation}: answer is not a JSON object")
            raise BusinessRuleError("Impossible de parser la réponse JSON")
        return parsed

    def parse_response(self, response: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Parse a model answer into a JSON object.

        Code fences and a leading "json" marker are removed first. When the
        cleaned text is not valid JSON, the first balanced {...} block that
        parses is returned.

        Args:
            response: Raw answer text.

        Returns:
            The parsed object, or None when no JSON object could be read.
        """
        if not response:
            return None
        cleaned = response.strip().strip("`").strip()
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:].strip()
        parsed = self._try_json_parse(cleaned)
        if isinstance(parsed, dict):
            return parsed
        for candidate in self._iter_json_candidates(cleaned):
            parsed = self._try_json_parse(candidate)
            if isinstance(parsed, dict):
                return parsed
        log_warning("[LLM] No valid JSON object could be extracted from the answer")
        return None

    @staticmethod
    def _try_json_parse(text: Optional[str]) -> Optional[Any]:
        if not isinstance(text, str):
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _iter_json_candidates(text: str) -> Iterator[str]:
        """
        Yield the top-level balanced {...} blocks of a text, in order.

        Braces inside JSON strings are ignored.
        """
        depth = 0
        start = None
        in_string = False
        escaped = False
        for index, char in enumerate(text):
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"' and depth:
                in_string = True
            elif char == "{":
                if depth == 0:
                    start = index
                depth += 1
            elif char == "}" and depth:
                depth -= 1
                if depth == 0:
                    yield text[start:index + 1]
                    start = None


gemini_helper = GeminiHelper()
