"""
Transaction classification using the LLM.
"""
from typing import Optional, Sequence

from core.exceptions import ClassificationError
from core.logger import setup_logger
from core.schema import ClassificationResult
from llm.client import OpenAIClientWrapper
from llm.prompts import build_prompt

logger = setup_logger(__name__)


class TransactionClassifier:
    """Asks the LLM to pick one of the ledger's categories for a transaction."""

    def __init__(self, client: Optional[OpenAIClientWrapper] = None):
        self.client = client or OpenAIClientWrapper()

    def classify(
        self,
        categories: Sequence[str],
        destination_name: str,
        description: str
    ) -> ClassificationResult:
        """
        Classify a transaction.

        Args:
            categories: Category names available in the ledger
            destination_name: Counterparty of the transaction
            description: Normalized transaction description

        Returns:
            ClassificationResult; ``category`` is None when the reply is not a known category

        Raises:
            ClassificationError: If the LLM call fails
        """
        prompt = build_prompt(categories, destination_name, description)

        try:
            guess = self.client.complete(prompt)
        except ClassificationError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in classification: {e}", exc_info=True)
            raise ClassificationError(f"Unexpected error calling OpenAI: {str(e)}")

        if guess not in categories:
            logger.warning(
                f"OpenAI could not classify the transaction.\nPrompt: {prompt}\nOpenAI's guess: {guess}"
            )
            return ClassificationResult(category=None, prompt=prompt, response=guess)

        logger.info(f"Classified '{destination_name}' as '{guess}'")
        return ClassificationResult(category=guess, prompt=prompt, response=guess)
