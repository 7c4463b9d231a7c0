"""AI-backed CAPTCHA challenges.

The model both writes the question and judges the answer, so this is weak
anti-automation only. Nothing here is an authorization control.
"""

import logging
from dataclasses import dataclass

from fitofaucet.ai.client import TextGenerator, UpstreamUnavailableError
from fitofaucet.observability.metrics import CHALLENGES

logger = logging.getLogger(__name__)

QUESTION_INSTRUCTION = """\
Generate a simple and short CAPTCHA-style question that most humans can answer easily. \
The answer should be a single word or number.
Examples:
- "What color is a banana?"
- "What is 5 + 8?"
- "Which animal says 'woof'?"
- "How many days are in a week?"
Do not include the answer in your response. Only provide the question text."""

VERIFY_TEMPLATE = (
    'Is "{answer}" a correct answer for the question "{question}"? '
    "Consider common variations but be strict with math. "
    'Answer with only "true" or "false".'
)

_QUOTES = "\"'“”"


@dataclass
class Challenge:
    """A question issued to a client."""

    question: str


class ChallengeIssuer:
    """Generates CAPTCHA questions.

    Parameters
    ----------
    generator : TextGenerator
        AI text-completion client.
    """

    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def issue(self) -> Challenge:
        """Generate a new question.

        Raises
        ------
        UpstreamUnavailableError
            If the AI service fails or returns nothing usable.
        """
        text = await self._generator.generate(
            "Give me a new question.",
            system_instruction=QUESTION_INSTRUCTION,
            temperature=1.0,
            operation="captcha_question",
        )
        question = text.replace('"', "").strip().strip(_QUOTES).strip()
        if not question:
            raise UpstreamUnavailableError("AI service returned only quote characters")
        return Challenge(question=question)


class ChallengeVerifier:
    """Judges answers to previously issued questions.

    Parameters
    ----------
    generator : TextGenerator
        AI text-completion client.
    """

    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def verify(self, question: str, answer: str) -> bool:
        """Decide whether ``answer`` satisfies ``question``.

        Returns
        -------
        bool
            True only if the model replies with exactly ``true``.

        Raises
        ------
        UpstreamUnavailableError
            If the AI service fails; distinct from a wrong answer.
        """
        verdict = await self._generator.generate(
            VERIFY_TEMPLATE.format(question=question, answer=answer),
            temperature=0.0,
            operation="captcha_verify",
        )
        correct = verdict.strip().lower() == "true"
        CHALLENGES.labels(result="correct" if correct else "incorrect").inc()
        logger.debug("Challenge verified", extra={"correct": correct})
        return correct
