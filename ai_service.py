"""
Centralized AI Service Manager
Wraps the Gemini API with configuration and error handling
"""
import json
import logging
from typing import Optional, Dict, Any, List

import google.generativeai as genai

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    pass


class AIServiceUnavailable(AIServiceError):
    """Raised when AI service is not configured or unavailable"""
    pass


class GeminiService:
    """
    Gemini client holding the configured model.

    A failed call raises AIServiceError; callers decide whether to fall
    back to canned text. Nothing is retried.
    """

    def __init__(self, config):
        """
        Initialize the Gemini client with configuration

        Args:
            config: Flask app configuration mapping
        """
        self.api_key = config.get('GEMINI_API_KEY')
        self.model_name = config.get('GEMINI_MODEL') or 'gemini-1.5-flash'
        self.configured = False

        if self.api_key:
            genai.configure(api_key=self.api_key)
            self.configured = True
            logger.info(f"Gemini client initialized: model={self.model_name}")
        else:
            logger.warning("GEMINI_API_KEY not set - AI features will use fallbacks")

    def is_available(self) -> bool:
        return self.configured

    def _model(self, system_instruction: Optional[str] = None):
        if not self.configured:
            raise AIServiceUnavailable("Gemini is not configured")
        if system_instruction:
            return genai.GenerativeModel(self.model_name, system_instruction=system_instruction)
        return genai.GenerativeModel(self.model_name)

    def generate_text(self, prompt, system_instruction: Optional[str] = None) -> str:
        """
        Single-shot generation.

        Args:
            prompt: Text prompt, or a list of parts for multimodal input
            system_instruction: Optional system prompt

        Returns:
            Response text

        Raises:
            AIServiceUnavailable: If Gemini is not configured
            AIServiceError: On API errors
        """
        model = self._model(system_instruction)
        try:
            logger.info(f"Calling Gemini generate_content: model={self.model_name}")
            response = model.generate_content(prompt)
            return response.text
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise AIServiceError(f"Gemini API error: {e}")

    def generate_json(self, prompt: str) -> Dict[str, Any]:
        """Generation in JSON mode; the reply is parsed into a dict."""
        model = self._model()
        try:
            logger.info(f"Calling Gemini JSON mode: model={self.model_name}")
            response = model.generate_content(
                prompt,
                generation_config={'response_mime_type': 'application/json'}
            )
            return json.loads(response.text)
        except json.JSONDecodeError as e:
            logger.error(f"Gemini returned invalid JSON: {e}")
            raise AIServiceError(f"Invalid JSON from Gemini: {e}")
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise AIServiceError(f"Gemini API error: {e}")

    def chat(self, message: str, history: List[Dict[str, Any]],
             system_instruction: Optional[str] = None) -> str:
        """
        Continue a chat.

        Args:
            message: New user message
            history: Prior turns as {'role': 'user'|'model', 'parts': [...]}
            system_instruction: Optional system prompt
        """
        model = self._model(system_instruction)
        try:
            logger.info(f"Calling Gemini chat: {len(history)} prior turns")
            session = model.start_chat(history=history)
            response = session.send_message(message)
            return response.text
        except Exception as e:
            logger.error(f"Gemini chat error: {e}")
            raise AIServiceError(f"Gemini API error: {e}")
