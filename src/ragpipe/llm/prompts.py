"""
Prompt templates for answer generation.

Prompts are read from ``system_prompt.txt`` and ``answer_prompt.txt`` in the
configured prompts directory. Missing files fall back to the defaults below.
The answer template uses ``{context}`` and ``{question}`` placeholders.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = """You are an assistant that answers questions based on the provided context.
Answer precisely and to the point, using only information from the context.
If the context does not contain the information needed, say so."""


DEFAULT_ANSWER_PROMPT = """Use the context below to answer the question.

Context:
{context}

Question: {question}

Give an accurate technical answer based on the provided context."""


SYSTEM_PROMPT_FILE = "system_prompt.txt"
ANSWER_PROMPT_FILE = "answer_prompt.txt"


@dataclass(frozen=True)
class PromptSet:
    """System prompt and answer template used for one chat completion."""

    system: str = DEFAULT_SYSTEM_PROMPT
    answer_template: str = DEFAULT_ANSWER_PROMPT

    def render_answer(self, context: str, question: str) -> str:
        """Fill the answer template.

        Plain replacement rather than str.format, so braces inside the
        retrieved context are left alone.
        """
        prompt = self.answer_template.replace("{context}", context)
        return prompt.replace("{question}", question)


def load_prompt(path: Path) -> str:
    """
    Load a prompt from a file.

    Raises:
        OSError: If the file can't be read
    """
    return path.read_text(encoding="utf-8").strip()


def load_prompts(prompts_dir: Path | None) -> PromptSet:
    """
    Load prompts from a directory, falling back to defaults per file.

    Args:
        prompts_dir: Directory containing the prompt files (None for defaults)

    Returns:
        PromptSet with file contents where available
    """
    system = DEFAULT_SYSTEM_PROMPT
    answer_template = DEFAULT_ANSWER_PROMPT

    if prompts_dir is not None:
        try:
            system = load_prompt(prompts_dir / SYSTEM_PROMPT_FILE)
        except OSError:
            logger.debug(f"No {SYSTEM_PROMPT_FILE} in {prompts_dir}, using default")

        try:
            answer_template = load_prompt(prompts_dir / ANSWER_PROMPT_FILE)
        except OSError:
            logger.debug(f"No {ANSWER_PROMPT_FILE} in {prompts_dir}, using default")

    return PromptSet(system=system, answer_template=answer_template)
