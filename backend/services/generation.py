import asyncio
import logging
from typing import Optional, Sequence

import openai
from openai import AsyncOpenAI

from config import Settings
from models import Difficulty, QuizQuestion
from prompts import QUIZ_EXCLUSIONS, QUIZ_PROMPT, QUIZ_SYSTEM_PROMPT
from services.validation import InvalidQuiz, validate_quiz_payload

logger = logging.getLogger(__name__)


class QuizGenerationError(Exception):
    """A quiz could not be produced. ``batch`` is the 1-based batch that failed, if any."""

    def __init__(self, message: str, batch: Optional[int] = None):
        super().__init__(message)
        self.batch = batch


class QuizTimeoutError(QuizGenerationError):
    """The model did not answer within the per-call time budget."""


class _AttemptFailed(Exception):
    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


def split_into_batches(total: int, batch_size: int) -> list[int]:
    """Split ``total`` questions into batch sizes, e.g. 12 by 5 -> [5, 5, 2]."""
    if total < 1:
        return []
    full, rest = divmod(total, batch_size)
    return [batch_size] * full + ([rest] if rest else [])


def build_quiz_prompt(
    topic: str,
    count: int,
    difficulty: Difficulty,
    exclude: Sequence[str] = (),
) -> str:
    exclusions = ""
    if exclude:
        exclusions = QUIZ_EXCLUSIONS.format(questions="\n".join(f"- {q}" for q in exclude))
    return QUIZ_PROMPT.format(
        count=count,
        topic=topic,
        difficulty=Difficulty(difficulty).value,
        exclusions=exclusions,
    )


class QuizGenerator:
    """
    Generates a quiz in fixed-size batches, one model call per batch.

    Batches run sequentially. Each batch gets ``batch_max_retries`` extra
    attempts; if one still fails the whole quiz fails and earlier batches
    are discarded.
    """

    def __init__(self, client: AsyncOpenAI, settings: Settings):
        self.client = client
        self.model = settings.chat_model
        self.temperature = settings.temperature
        self.batch_size = settings.batch_size
        self.max_retries = settings.batch_max_retries
        self.backoff_seconds = settings.retry_backoff_seconds
        self.timeout_seconds = settings.request_timeout_seconds
        self.count_policy = settings.count_policy

    async def generate(self, topic: str, num_questions: int, difficulty: Difficulty) -> list[QuizQuestion]:
        batches = split_into_batches(num_questions, self.batch_size)
        questions: list[QuizQuestion] = []

        for number, size in enumerate(batches, start=1):
            logger.info("Generating batch %d/%d (%d questions) for topic %r", number, len(batches), size, topic)
            batch = await self._generate_batch(
                topic,
                size,
                difficulty,
                number=number,
                total=len(batches),
                exclude=[q.question for q in questions],
            )
            questions.extend(batch)

        return questions

    async def _generate_batch(
        self,
        topic: str,
        size: int,
        difficulty: Difficulty,
        number: int,
        total: int,
        exclude: Sequence[str],
    ) -> list[QuizQuestion]:
        prompt = build_quiz_prompt(topic, size, difficulty, exclude)
        attempts = 1 + self.max_retries
        last_failure: Optional[_AttemptFailed] = None

        for attempt in range(1, attempts + 1):
            try:
                return await self._attempt(prompt, size)
            except _AttemptFailed as e:
                last_failure = e
                logger.warning("Batch %d/%d attempt %d/%d failed: %s", number, total, attempt, attempts, e)

            if attempt < attempts and self.backoff_seconds:
                await asyncio.sleep(self.backoff_seconds * 2 ** (attempt - 1))

        message = f"Failed to generate batch {number} of {total} after {attempts} attempts: {last_failure}"
        logger.error(message)
        if last_failure.timed_out:
            raise QuizTimeoutError(message, batch=number)
        raise QuizGenerationError(message, batch=number)

    async def _attempt(self, prompt: str, size: int) -> list[QuizQuestion]:
        raw = await self._complete(prompt)

        result = validate_quiz_payload(raw)
        if isinstance(result, InvalidQuiz):
            raise _AttemptFailed(result.message)

        questions = result.questions
        if len(questions) != size:
            if self.count_policy == "strict":
                raise _AttemptFailed(f"Expected {size} questions, got {len(questions)}")
            if not questions:
                raise _AttemptFailed("Empty questions array")
            questions = questions[:size]
        return questions

    async def _complete(self, prompt: str) -> Optional[str]:
        """Run one chat completion, cancelled after ``timeout_seconds``."""
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": QUIZ_SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError):
            raise _AttemptFailed(f"Model call timed out after {self.timeout_seconds:g}s", timed_out=True)
        except openai.OpenAIError as e:
            raise _AttemptFailed(f"Model API error: {e}")

        if not response.choices:
            return None
        return response.choices[0].message.content


def create_quiz_generator(settings: Settings) -> Optional[QuizGenerator]:
    """Build the process-wide generator, or None when no API key is configured."""
    if not settings.openai_api_key:
        return None
    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )
    return QuizGenerator(client, settings)
