import pytest

from services.scheduling.tests.scheduling_test_base import FakeCalendarProvider


@pytest.fixture
def provider():
    return FakeCalendarProvider()


@pytest.fixture
def test_settings():
    """Install test settings in the scheduling settings singleton."""
    import services.scheduling.settings as scheduling_settings

    settings = scheduling_settings.Settings(
        office_service_url="http://office.test",
        api_scheduling_office_key="test-scheduling-office-key",
        api_frontend_scheduling_key="test-frontend-scheduling-key",
    )

    # Directly set the singleton instead of using monkeypatch
    scheduling_settings._settings = settings
    yield settings
    scheduling_settings._settings = None
