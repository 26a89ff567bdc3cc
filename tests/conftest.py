import pytest

from services.unified_data_service import reset_unified_data_service


@pytest.fixture(autouse=True)
def _fresh_document_cache():
    """Each test starts without documents cached by an earlier one."""
    reset_unified_data_service()
    yield
    reset_unified_data_service()
