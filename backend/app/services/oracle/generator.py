"""
Reading generation - OpenAI/OpenRouter chat completion, or an offline template.
"""

import logging
from typing import Optional, Protocol

import openai

from app.core.config import Settings
from app.core.exceptions import GenerationFailure
from app.services.oracle.deck import OracleCard

logger = logging.getLogger(__name__)


class ReadingGenerator(Protocol):
    async def generate(self, question: str, name: Optional[str], card: OracleCard) -> str:
        ...


def build_oracle_prompt(question: str, name: Optional[str], card: OracleCard) -> str:
    """System prompt for one oracle reading."""
    seeker = f"The seeker's name is {name}. Address them by name.\n" if name else ""
    return (
        "You are KiaOra Oracle, an intuitive Maori healer specializing in spiritual guidance.\n"
        f"{seeker}"
        f"User intent/question: \"{question}\"\n"
        f"Card Drawn: \"{card.name}\" - \"{card.meaning}\"\n"
        "Create a personalized, insightful, and supportive oracle reading integrating the user's "
        "intent and the meaning of the card, using a mystical yet reassuring tone aligned with "
        "holistic Māori healing practices.\n"
        "Keep your response concise (80-120 words), actionable, and warm."
    )


class TemplateReadingGenerator:
    """Offline reading used when the OpenAI API is disabled."""

    async def generate(self, question: str, name: Optional[str], card: OracleCard) -> str:
        return (
            f"Test Oracle Response: The {card.name} card suggests {card.meaning}. "
            f"Consider this in relation to your question about \"{question}\". "
            "May wisdom guide your path forward."
        )


class OpenAIReadingGenerator:
    """Reading generated with the OpenAI (or OpenRouter) Chat API."""

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 200
    ):
        self.openai_client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, question: str, name: Optional[str], card: OracleCard) -> str:
        prompt = build_oracle_prompt(question, name, card)
        try:
            response = await self.openai_client.chat.completions.create(
                model=self.model,
                messages=[{"role": "system", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except openai.OpenAIError as e:
            logger.error(f"Failed to generate oracle reading: {e}")
            raise GenerationFailure(str(e)) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        logger.info(f"Generated oracle reading for card {card.name}")
        return content.strip()


def create_openai_client(settings: Settings) -> openai.AsyncOpenAI:
    """Initialize OpenAI/OpenRouter client for readings."""
    if settings.use_openrouter and settings.openrouter_api_key:
        logger.info("Using OpenRouter for oracle readings")
        return openai.AsyncOpenAI(
            api_key=settings.openrouter_api_key,
            base_url="https://openrouter.ai/api/v1",
            default_headers={"X-Title": "KiaOra Oracle"},
            timeout=settings.generation_timeout_seconds
        )

    logger.info("Using OpenAI for oracle readings")
    return openai.AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.generation_timeout_seconds
    )


def create_reading_generator(settings: Settings) -> ReadingGenerator:
    if not settings.use_openai_api:
        logger.info("OpenAI API disabled, using template readings")
        return TemplateReadingGenerator()
    return OpenAIReadingGenerator(
        create_openai_client(settings),
        model=settings.oracle_chat_model,
        temperature=settings.oracle_temperature,
        max_tokens=settings.oracle_max_tokens
    )
