"""
Google Gemini LLM
支持 Gemini 2.5 Flash, Gemini 1.5 Pro 等模型
"""
from typing import List, Optional
import logging

from utils.exceptions import LLMError, RateLimitError
from .base import BaseLLM, Message, MessageRole, LLMResponse


logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """
    Google Gemini LLM 实现

    支持模型:
    - gemini-2.5-flash (推荐)
    - gemini-1.5-pro
    - gemini-1.5-flash
    """

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key

    @property
    def provider(self) -> str:
        return "gemini"

    def _convert_messages(self, messages: List[Message]) -> tuple:
        """
        转换消息格式 (Gemini 格式)

        Returns:
            (system_instruction, history, last_message)
        """
        system_instruction = None
        history = []
        last_message = None

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_instruction = msg.content
            elif msg.role == MessageRole.USER:
                last_message = msg.content
            elif msg.role == MessageRole.ASSISTANT:
                if last_message:
                    history.append({"role": "user", "parts": [last_message]})
                    last_message = None
                history.append({"role": "model", "parts": [msg.content]})

        return system_instruction, history, last_message

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """异步生成响应"""
        import google.generativeai as genai
        from google.api_core import exceptions as google_exceptions

        genai.configure(api_key=self.api_key)

        system_instruction, history, last_message = self._convert_messages(messages)

        generation_config = {
            "temperature": kwargs.get("temperature", self.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        model = genai.GenerativeModel(
            model_name=self.model,
            generation_config=generation_config,
            system_instruction=system_instruction,
        )
        chat = model.start_chat(history=history)

        try:
            response = await chat.send_message_async(
                last_message or "",
                request_options={"timeout": self.timeout},
            )
        except (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests) as exc:
            raise RateLimitError(f"Gemini quota exceeded: {exc}", provider=self.provider) from exc
        except google_exceptions.GoogleAPIError as exc:
            raise LLMError(f"Gemini request failed: {exc}", provider=self.provider) from exc

        try:
            content = response.text or ""
        except ValueError as exc:
            # 被安全策略拦截等情况下 response.text 会抛出 ValueError
            raise LLMError(f"Gemini returned no text: {exc}", provider=self.provider) from exc

        usage = {}
        if getattr(response, "usage_metadata", None):
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }

        return LLMResponse(
            content=content,
            model=self.model,
            usage=usage,
            finish_reason=response.candidates[0].finish_reason.name if response.candidates else None,
            raw_response=response,
        )
