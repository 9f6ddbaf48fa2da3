"""Assistant reply generation: Gemini via LangChain for one designated model, templates for the rest."""
from __future__ import annotations

import asyncio
import logging

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

logger = logging.getLogger(__name__)

# Fixed decoding parameters for the real model
TEMPERATURE = 0.7
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 1024

SIMULATED_MARKER = "Simulated Response]"
FALLBACK_MARKER = "API Error - Fallback Response]"

# Vendor sentence for simulated backends the catalog ships with
_SIMULATED_VENDORS = {
    "gpt-4o": (
        "This is a simulated response from OpenAI's {name} model. "
        "In a real implementation, this would call the OpenAI API for intelligent responses."
    ),
    "gpt-4o-mini": "This is a simulated response from OpenAI's {name} model.",
    "gpt-3.5-turbo": "This is a simulated response from OpenAI's {name} model.",
    "claude-3-sonnet": "This is a simulated response from Anthropic's {name} model.",
    "claude-3-haiku": "This is a simulated response from Anthropic's {name} model.",
}


class EmptyResponseError(Exception):
    """The inference backend answered without any text."""
    pass


def simulated_response(model_tag: str, prompt: str, model_name: str) -> str:
    """Deterministic placeholder reply for models without a real backend."""
    sentence = _SIMULATED_VENDORS.get(model_tag, "This is a simulated response from {name}.")
    return f'[{model_name} {SIMULATED_MARKER} You said: "{prompt}". ' + sentence.format(name=model_name)


def fallback_response(prompt: str, model_name: str, detail: str) -> str:
    """Labelled reply used when the real backend fails; embeds the error and echoes the prompt."""
    return (
        f"[{model_name} {FALLBACK_MARKER} I apologize, but I encountered an issue connecting to "
        f'the {model_name} API ({detail}). Here\'s a simulated response: You said "{prompt}". '
        f"This would normally be processed by the {model_name} model for an intelligent response."
    )


def _response_text(response) -> str:
    content = getattr(response, "content", "")
    if isinstance(content, str):
        return content
    # Multi-part content: keep the text parts in order
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text") or "")
    return "".join(parts)


def build_gemini_model(model_tag: str, api_key: str, timeout_seconds: float) -> BaseChatModel:
    """Gemini chat model with the fixed decoding parameters."""
    return ChatGoogleGenerativeAI(
        model=model_tag,
        google_api_key=api_key,
        temperature=TEMPERATURE,
        top_k=TOP_K,
        top_p=TOP_P,
        max_output_tokens=MAX_OUTPUT_TOKENS,
        timeout=timeout_seconds,
        max_retries=1,
    )


class ResponseGenerator:
    """
    Produces assistant text for (model_tag, prompt). Never raises to the caller:
    the designated model's failures become a fallback reply, other tags get a template.
    Without a chat model configured, the designated tag is simulated as well.
    """

    def __init__(
        self,
        real_model_tag: str,
        llm: BaseChatModel | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.real_model_tag = real_model_tag
        self._llm = llm
        self.timeout_seconds = timeout_seconds

    @property
    def has_real_backend(self) -> bool:
        return self._llm is not None

    async def generate(self, model_tag: str, prompt: str, model_name: str) -> str:
        if model_tag == self.real_model_tag and self._llm is not None:
            return await self._generate_real(prompt, model_name)
        return simulated_response(model_tag, prompt, model_name)

    async def _generate_real(self, prompt: str, model_name: str) -> str:
        logger.info("Generating real %s response", self.real_model_tag)
        # Single turn: no conversation history is sent
        try:
            response = await asyncio.wait_for(
                self._llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout_seconds,
            )
            text = _response_text(response)
            if not text.strip():
                raise EmptyResponseError(f"Empty response from {model_name} API")
        except asyncio.TimeoutError as e:
            detail = str(e) or f"request timed out after {self.timeout_seconds:g}s"
            logger.warning("Inference for %s timed out: %s", self.real_model_tag, detail)
            return fallback_response(prompt, model_name, detail)
        except Exception as e:
            logger.warning("Inference for %s failed, using fallback: %s", self.real_model_tag, e)
            return fallback_response(prompt, model_name, str(e) or type(e).__name__)
        logger.info("%s response generated (%d chars)", self.real_model_tag, len(text))
        return text
