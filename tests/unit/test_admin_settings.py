"""Tests for the admin settings blob and its stores"""

import json

import pytest
from pydantic import ValidationError

from jira_calendar.calendar.admin_settings import (
    SETTINGS_KEY,
    CalendarBarFields,
    CalendarSettings,
    InMemorySettingsStore,
    JsonFileSettingsStore,
    default_settings,
    load_settings_or_default,
    parse_calendar_settings,
)
from jira_calendar.utils.errors import CalendarError, ErrorCode

STORED = {
    "projectKey": "VIS",
    "projects": ["VIS", "OPS"],
    "requestTypesWithProjects": [
        {"name": "Visit", "projectKey": "VIS", "label": "Visit (VIS)"},
        {
            "name": "Task",
            "projectKey": "OPS",
            "label": "Task (OPS)",
            "itemType": "issueType",
        },
    ],
    "customFields": {
        "timeOfVisit": "[customfield_1]",
        "endTime": "customfield_2",
        "site": "customfield_3",
        "typeOfVisit": "customfield_4",
        "visitorName": "customfield_5",
        "additionalFields": [
            {"id": "rack", "label": "Rack", "jiraFieldId": "[customfield_6]"}
        ],
    },
    "calendarBarFields": {"monthly": ["site"], "weekly": ["visitorName"]},
    "weekViewDays": 7,
}


def test_defaults():
    settings = default_settings()

    assert settings.request_types == ["Visit"]
    assert settings.custom_fields.time_of_visit == "customfield_10061"
    assert settings.custom_fields.end_time == "customfield_10179"
    assert settings.custom_fields.site == "customfield_10065"
    assert settings.custom_fields.type_of_visit == "customfield_10066"
    assert settings.custom_fields.visitor_name == "customfield_10067"
    assert settings.calendar_bar_fields.monthly == ["site", "typeOfVisit"]
    assert settings.week_view_days == 5


def test_stored_shape_round_trip():
    settings = parse_calendar_settings(STORED)

    assert settings.custom_fields.time_of_visit == "customfield_1"
    assert settings.custom_fields.additional_fields[0].jira_field_id == "customfield_6"
    assert settings.request_types_with_projects[0].item_type == "requestType"
    assert settings.request_types_with_projects[1].item_type == "issueType"

    stored = settings.to_storage()
    assert stored["customFields"]["timeOfVisit"] == "customfield_1"
    assert stored["requestTypesWithProjects"][1]["projectKey"] == "OPS"
    assert stored["weekViewDays"] == 7


def test_mapped_field_ids():
    settings = parse_calendar_settings(STORED)
    assert settings.custom_fields.mapped_field_ids() == [
        "customfield_1",
        "customfield_2",
        "customfield_3",
        "customfield_4",
        "customfield_5",
        "customfield_6",
    ]


def test_bar_fields_capped():
    CalendarBarFields(monthly=[f"f{i}" for i in range(10)])
    with pytest.raises(ValidationError):
        CalendarBarFields(monthly=[f"f{i}" for i in range(11)])


def test_invalid_blob_falls_back_to_defaults():
    settings = parse_calendar_settings({"weekViewDays": 6})
    assert settings == default_settings()


def test_non_object_blob_falls_back_to_defaults():
    assert parse_calendar_settings(["VIS"]) == default_settings()


def test_invalid_section_keeps_the_rest_of_the_blob():
    stored = {
        "projectKey": "VIS",
        "projects": ["VIS", "OPS"],
        "customFields": {"site": "customfield_20001"},
        "calendarBarFields": {"monthly": [f"f{i}" for i in range(11)]},
        "weekViewDays": 6,
    }

    settings = parse_calendar_settings(stored)

    assert settings.project_key == "VIS"
    assert settings.projects == ["VIS", "OPS"]
    assert settings.custom_fields.site == "customfield_20001"
    assert settings.calendar_bar_fields == CalendarBarFields()
    assert settings.week_view_days == 5


def test_none_gives_defaults():
    assert parse_calendar_settings(None) == default_settings()


@pytest.mark.asyncio
async def test_in_memory_store():
    store = InMemorySettingsStore()
    assert await store.load() is None

    settings = CalendarSettings(project_key="VIS")
    await store.save(settings)

    loaded = await store.load()
    assert loaded == settings
    assert loaded is not settings


class TestJsonFileSettingsStore:
    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, tmp_path):
        store = JsonFileSettingsStore(tmp_path / "settings.json")
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_save_replaces_whole_object(self, tmp_path):
        path = tmp_path / "data" / "settings.json"
        store = JsonFileSettingsStore(path)

        await store.save(parse_calendar_settings(STORED))
        await store.save(CalendarSettings(project_key="NEW"))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data) == [SETTINGS_KEY]
        assert data[SETTINGS_KEY]["projectKey"] == "NEW"
        assert data[SETTINGS_KEY]["projects"] == []

        loaded = await store.load()
        assert loaded.project_key == "NEW"

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_load_error(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CalendarError) as exc_info:
            await JsonFileSettingsStore(path).load()

        assert exc_info.value.code is ErrorCode.LOAD_SETTINGS_ERROR

    @pytest.mark.asyncio
    async def test_load_or_default_survives_corrupt_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        settings = await load_settings_or_default(JsonFileSettingsStore(path))

        assert settings == default_settings()
