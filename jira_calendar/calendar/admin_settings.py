"""
Admin configuration for the calendar

The settings blob maps logical roles (visit start, end, site, ...) to Jira
field ids, selects the projects and work-item types to show and lists the
fields rendered on event bars. It is stored as one opaque JSON object and
always replaced wholesale on save.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal, Protocol

import aiofiles
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from jira_calendar.calendar.normalizer import normalize_field_id
from jira_calendar.utils.errors import CalendarError, ErrorCode

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "adminSettings"
MAX_BAR_FIELDS = 10
DEFAULT_BAR_FIELDS = ["site", "typeOfVisit"]


class AdditionalField(BaseModel):
    """Extra Jira field shown in the visit details"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    jira_field_id: str = Field(alias="jiraFieldId")

    @field_validator("jira_field_id")
    @classmethod
    def _strip_brackets(cls, value: str) -> str:
        return normalize_field_id(value)


class CustomFieldMapping(BaseModel):
    """Logical role -> Jira field id"""

    model_config = ConfigDict(populate_by_name=True)

    time_of_visit: str = Field(default="customfield_10061", alias="timeOfVisit")
    end_time: str = Field(default="customfield_10179", alias="endTime")
    site: str = Field(default="customfield_10065")
    type_of_visit: str = Field(default="customfield_10066", alias="typeOfVisit")
    visitor_name: str = Field(default="customfield_10067", alias="visitorName")
    additional_fields: list[AdditionalField] = Field(
        default_factory=list, alias="additionalFields"
    )

    @field_validator(
        "time_of_visit", "end_time", "site", "type_of_visit", "visitor_name"
    )
    @classmethod
    def _strip_brackets(cls, value: str) -> str:
        return normalize_field_id(value)

    def mapped_field_ids(self) -> list[str]:
        """Every Jira field id referenced by the mapping, in role order"""
        ids = [
            self.time_of_visit,
            self.end_time,
            self.site,
            self.type_of_visit,
            self.visitor_name,
        ]
        ids.extend(field.jira_field_id for field in self.additional_fields)
        return [field_id for field_id in ids if field_id]


class WorkItemType(BaseModel):
    """Request type (service desk) or issue type selected for a project"""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    project_key: str = Field(alias="projectKey")
    label: str = ""
    item_type: Literal["requestType", "issueType"] = Field(
        default="requestType", alias="itemType"
    )


class CalendarBarFields(BaseModel):
    """Ordered fields rendered on event bars per view"""

    monthly: list[str] = Field(default_factory=lambda: list(DEFAULT_BAR_FIELDS))
    weekly: list[str] = Field(default_factory=lambda: list(DEFAULT_BAR_FIELDS))

    @field_validator("monthly", "weekly")
    @classmethod
    def _cap_length(cls, value: list[str]) -> list[str]:
        if len(value) > MAX_BAR_FIELDS:
            raise ValueError(f"At most {MAX_BAR_FIELDS} bar fields are allowed")
        return value


class CalendarSettings(BaseModel):
    """Admin settings blob"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_key: str = Field(default="", alias="projectKey")
    projects: list[str] = Field(default_factory=list)
    request_type: str = Field(default="Visit", alias="requestType")
    request_types: list[str] = Field(
        default_factory=lambda: ["Visit"], alias="requestTypes"
    )
    request_types_with_projects: list[WorkItemType] = Field(
        default_factory=list, alias="requestTypesWithProjects"
    )
    custom_fields: CustomFieldMapping = Field(
        default_factory=CustomFieldMapping, alias="customFields"
    )
    calendar_bar_fields: CalendarBarFields = Field(
        default_factory=CalendarBarFields, alias="calendarBarFields"
    )
    week_view_days: Literal[5, 7] = Field(default=5, alias="weekViewDays")

    def to_storage(self) -> dict[str, Any]:
        """Serialize to the stored camelCase shape"""
        return self.model_dump(by_alias=True, mode="json")


def default_settings() -> CalendarSettings:
    return CalendarSettings()


def _stored_key(blob: dict[str, Any], loc: str) -> str | None:
    """Key in ``blob`` that a validation error location refers to"""
    if loc in blob:
        return loc
    field_info = CalendarSettings.model_fields.get(loc)
    if field_info is not None and field_info.alias in blob:
        return field_info.alias
    return None


def parse_calendar_settings(raw: Any) -> CalendarSettings:
    """Validate a stored blob section by section.

    Top-level sections that fail validation are replaced by their defaults
    and the rest of the blob is kept. A blob that is not an object at all
    yields the full defaults.
    """
    if raw is None:
        return default_settings()
    if isinstance(raw, CalendarSettings):
        return raw
    if not isinstance(raw, dict):
        logger.warning(
            "Stored calendar settings are not an object, using defaults",
            type=type(raw).__name__,
        )
        return default_settings()

    blob = dict(raw)
    while True:
        try:
            return CalendarSettings.model_validate(blob)
        except ValidationError as e:
            invalid = {
                _stored_key(blob, str(error["loc"][0]))
                for error in e.errors()
                if error["loc"]
            }
            invalid.discard(None)
            if not invalid:
                logger.warning(
                    "Stored calendar settings are invalid, using defaults",
                    error=str(e),
                )
                return default_settings()
            logger.warning(
                "Invalid calendar settings sections reset to defaults",
                sections=sorted(invalid),
                error=str(e),
            )
            for key in invalid:
                blob.pop(key)


class SettingsStore(Protocol):
    """Opaque load/save of the settings blob"""

    async def load(self) -> CalendarSettings | None: ...

    async def save(self, settings: CalendarSettings) -> None: ...


class InMemorySettingsStore:
    """Settings store kept in process memory"""

    def __init__(self, initial: CalendarSettings | None = None) -> None:
        self._blob: dict[str, Any] | None = initial.to_storage() if initial else None

    async def load(self) -> CalendarSettings | None:
        if self._blob is None:
            return None
        return parse_calendar_settings(self._blob)

    async def save(self, settings: CalendarSettings) -> None:
        self._blob = settings.to_storage()


class JsonFileSettingsStore:
    """Settings blob persisted in a JSON file under a single key"""

    def __init__(self, path: Path, key: str = SETTINGS_KEY) -> None:
        self.path = Path(path)
        self.key = key

    async def load(self) -> CalendarSettings | None:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            raise CalendarError(
                f"Failed to read settings: {e}", ErrorCode.LOAD_SETTINGS_ERROR
            ) from e

        blob = data.get(self.key) if isinstance(data, dict) else None
        if blob is None:
            return None
        return parse_calendar_settings(blob)

    async def save(self, settings: CalendarSettings) -> None:
        payload = {self.key: settings.to_storage()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(payload, indent=2, ensure_ascii=False))
            tmp_path.replace(self.path)
        except OSError as e:
            raise CalendarError(
                f"Failed to save settings: {e}", ErrorCode.SAVE_SETTINGS_ERROR
            ) from e
        logger.info("Settings saved successfully", path=str(self.path))


async def load_settings_or_default(store: SettingsStore) -> CalendarSettings:
    """Load the blob, using defaults when it is missing or unreadable"""
    try:
        settings = await store.load()
    except CalendarError as e:
        logger.error("Error loading settings", error=e.message)
        return default_settings()
    return settings or default_settings()
