"""
Prompt builder for transaction categorization.
"""
from typing import Sequence


def build_prompt(categories: Sequence[str], destination_name: str, description: str) -> str:
    """
    Build the categorization prompt.

    Args:
        categories: Category names available in the ledger
        destination_name: Counterparty of the transaction
        description: Normalized transaction description

    Returns:
        Prompt text asking for a single category name
    """
    return (
        "Given I want to categorize transactions on my bank account into these categories: "
        f"{', '.join(categories)}\n"
        f"In which category would a transaction from \"{destination_name}\" "
        f"with the subject \"{description}\" fall into?\n"
        "Just output the name of the category. It does not have to be a complete sentence."
    )
