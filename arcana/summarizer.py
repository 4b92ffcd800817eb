"""Question summarization through OpenAI."""

from __future__ import annotations

from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from . import config
from .errors import SummarizationError

PROMPTS = {
    "en": (
        "Summarize this tarot question while preserving the core intent and emotional context. "
        "Keep it under 400 characters. Return only the summarized question, nothing else.\n\n"
        'Original question: "{question}"'
    ),
    "fr": (
        "Résumez cette question de tarot en préservant l'intention principale et le contexte émotionnel. "
        "Gardez moins de 400 caractères. Retournez uniquement la question résumée, rien d'autre.\n\n"
        'Question originale: "{question}"'
    ),
}


def build_prompt(question: str, language: str = "en") -> str:
    return PROMPTS.get(language, PROMPTS["en"]).format(question=question)


async def summarize_question(
    question: str, language: str = "en", client: Optional[AsyncOpenAI] = None
) -> str:
    """Return a shortened question. Raises SummarizationError on any failure."""
    if client is None:
        api_key = config.OPENAI_API_KEY
        if not api_key or not api_key.strip():
            raise SummarizationError("OPENAI_API_KEY is not configured")
        client = AsyncOpenAI(api_key=api_key)

    try:
        response = await client.chat.completions.create(
            model=config.SUMMARY_MODEL,
            messages=[{"role": "user", "content": build_prompt(question, language)}],
            max_tokens=150,
            temperature=0.5,
        )
    except OpenAIError as e:
        raise SummarizationError(f"OpenAI request failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    summary = (content or "").strip()
    if not summary:
        raise SummarizationError("Empty summary returned")
    return summary
