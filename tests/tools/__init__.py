import pytest


@pytest.mark.usefixtures("compute_client", "parameters_client", "kms_client")
class TestCase:
    """Base for tool tests: every client talks to the fake server and is set in context."""
