"""Tools for the customer-support swarm in ``support_swarm.yaml``."""


def solve_tech_issue(issue: str) -> str:
    """Suggest a fix for a technical problem.

    Args:
        issue: Description of the technical problem.
    """
    return f"Fix for '{issue}': try restarting the application."


def check_account(account_id: str) -> str:
    """Check the status and balance of a customer account.

    Args:
        account_id: The customer's account id.
    """
    return f"Account '{account_id}': active. Balance: 1500."
