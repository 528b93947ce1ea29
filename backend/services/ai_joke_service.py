"""AI joke generation and explanation using OpenAI chat completions."""

import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)

MAX_EXAMPLE_JOKES = 10

GENERATION_SYSTEM_PROMPT = """You are a highly creative and witty comedian AI. Your goal is to generate hilarious and original jokes based on user prompts.
You should understand the nuances of humor and different joke structures (e.g., one-liners, setup-punchline, observational).
Avoid offensive, discriminatory, or inappropriate content.
Focus on generating jokes that are genuinely funny and engaging for a general audience.
Be creative and think outside the box. Surprise me with your humor!

Always answer with a JSON object of the form {"jokeText": "<the joke, setup and punchline>", "category": "<a short suggested category, e.g. Animals, Puns, Work>"}."""

EXPLANATION_SYSTEM_PROMPT = """You are a senior comedian trying to explain the jokes to the audience. Your tone should be insightful, a bit world-weary but still passionate about the craft of comedy.

Break down the joke's structure, identify the pun or the source of the humor, and explain why it works (or why it's a "groaner"). Keep the explanation concise, like a quick, witty aside during a comedy show. Do not just repeat the joke. Start directly with the explanation."""

# Failures worth another attempt; everything else surfaces immediately
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class AIGenerationError(Exception):
    """The AI provider failed or returned unusable output."""


class _JokeOutput(BaseModel):
    jokeText: str = Field(min_length=1)
    category: str = Field(min_length=1)


@dataclass
class GeneratedJoke:
    """A joke suggested by the model."""
    joke_text: str
    category: str


def build_generation_prompt(topic_hint: Optional[str], prefilled_jokes: Optional[List[str]]) -> str:
    """Build the user prompt for one generated joke."""
    topic = topic_hint.strip() if topic_hint and topic_hint.strip() else None
    prompt = (
        f"Generate a 5-star rated joke about: {topic or 'anything'}. "
        + ("" if topic else "The topic is not defined, so choose one randomly. ")
        + "Make sure the joke is original and not a well-known existing joke. "
        "It should be suitable for a general audience."
    )

    examples = [joke.strip() for joke in (prefilled_jokes or []) if joke and joke.strip()]
    if examples:
        listed = "\n".join(f"- {joke}" for joke in examples[:MAX_EXAMPLE_JOKES])
        prompt += (
            "\n\nThe user loved these jokes. Match their sense of humor, "
            f"but the new joke must be different from all of them:\n{listed}"
        )
    return prompt


class AIJokeService:
    """Service for AI-powered joke generation and explanation."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        if client is not None:
            self.client = client
        elif not settings.OPENAI_API_KEY:
            logger.warning("OpenAI API key not configured")
            self.client = None
        else:
            self.client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

    def _require_client(self) -> AsyncOpenAI:
        if self.client is None:
            raise AIGenerationError("AI service is not configured")
        return self.client

    async def generate_joke(
        self,
        topic_hint: Optional[str] = None,
        prefilled_jokes: Optional[List[str]] = None,
        model: Optional[str] = None
    ) -> GeneratedJoke:
        """
        Generate one joke and a suggested category.

        Args:
            topic_hint: Optional topic, a random one is picked when missing
            prefilled_jokes: Examples of jokes the user liked; the result must differ
            model: Chat model, defaults to OPENAI_MODEL

        Returns:
            GeneratedJoke

        Raises:
            AIGenerationError: If the provider fails or the output is empty or malformed
        """
        client = self._require_client()
        model = model or settings.OPENAI_MODEL

        try:
            response = await self._create_completion(
                client,
                model=model,
                messages=[
                    {"role": "system", "content": GENERATION_SYSTEM_PROMPT},
                    {"role": "user", "content": build_generation_prompt(topic_hint, prefilled_jokes)},
                ],
                temperature=settings.OPENAI_TEMPERATURE,
                max_tokens=settings.OPENAI_MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            logger.error(f"Error generating joke with {model}: {str(e)}")
            raise AIGenerationError(f"AI provider error: {str(e)}")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIGenerationError("AI failed to generate a joke. The output was empty.")

        try:
            output = _JokeOutput.model_validate(json.loads(content))
        except (json.JSONDecodeError, SchemaValidationError) as e:
            logger.error(f"AI output validation error: {str(e)}")
            raise AIGenerationError("AI returned data in an unexpected format.")

        logger.info(f"Generated joke in category '{output.category}' with {model}")
        return GeneratedJoke(joke_text=output.jokeText.strip(), category=output.category.strip())

    async def stream_explanation(self, joke_text: str, model: Optional[str] = None) -> AsyncIterator[str]:
        """
        Open a streamed explanation of a joke.

        The request is sent before this returns, so provider errors raise here
        rather than midway through the response.

        Returns:
            Async iterator of plain-text chunks
        """
        client = self._require_client()
        model = model or settings.OPENAI_MODEL

        try:
            stream = await self._create_completion(
                client,
                model=model,
                messages=[
                    {"role": "system", "content": EXPLANATION_SYSTEM_PROMPT},
                    {"role": "user", "content": f'Explain this joke: "{joke_text}"'},
                ],
                temperature=settings.OPENAI_TEMPERATURE,
                max_tokens=settings.OPENAI_MAX_TOKENS,
                stream=True,
            )
        except openai.OpenAIError as e:
            logger.error(f"Error explaining joke with {model}: {str(e)}")
            raise AIGenerationError(f"AI provider error: {str(e)}")

        return self._iter_text(stream)

    @staticmethod
    async def _iter_text(stream) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        except openai.OpenAIError as e:
            # Headers are already sent, so the client just sees a truncated body
            logger.error(f"Explanation stream interrupted: {str(e)}")

    @staticmethod
    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True
    )
    async def _create_completion(client: AsyncOpenAI, **kwargs):
        return await client.chat.completions.create(**kwargs)
