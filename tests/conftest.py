"""
Pytest fixtures and configuration for activity_normalizer tests.
Provides raw extracted records and isolated engine/context instances.
"""

import logging
from datetime import date

import pytest

from activity_normalizer import startup
from activity_normalizer.config.settings import CONFIG_ENV_VAR
from activity_normalizer.context import NormalizerContext
from activity_normalizer.conversion.engine import SchemaConversionService

# Fixed reference date so "future" and "past" do not drift
TODAY = date(2024, 6, 1)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test from an empty directory with no settings file or cached startup state."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    startup.reset_state()
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    startup.reset_state()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def service():
    """Conversion service with a fixed reference date."""
    return SchemaConversionService(today=TODAY)


@pytest.fixture
def context():
    return NormalizerContext(today=TODAY)


@pytest.fixture
def full_event():
    """One event with every canonical field populated."""
    return {
        "title": "Family Science Workshop",
        "description": "Hands-on experiments for curious kids and their parents.",
        "date": "2024-12-15",
        "time": "10:00 AM - 11:30 AM",
        "location": "Ballard Library",
        "address": "5614 22nd Ave NW, Seattle, WA 98107",
        "price": "$15",
        "age_groups": ["Preschool", "Elementary"],
        "registration_url": "https://spl.org/register",
        "organizer": "Seattle Public Library",
    }


@pytest.fixture
def full_record(full_event):
    return {"events": [full_event]}


@pytest.fixture
def name_only_record():
    """Title only available under the second-priority key."""
    return {"events": [{"name": "Community Garden Day", "date": "2024-12-15"}]}
