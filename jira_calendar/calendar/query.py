"""JQL construction for the visit search."""

from jira_calendar.calendar.admin_settings import (
    CalendarSettings,
    CustomFieldMapping,
    WorkItemType,
)
from jira_calendar.utils.dates import default_date_range, parse_datetime
from jira_calendar.utils.errors import InvalidDateRangeError
from jira_calendar.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_PROJECT = "PROJECT"
FALLBACK_REQUEST_TYPE = "Visit"
BASE_FIELDS = ["summary", "description", "status", "created", "assignee", "issuetype"]


def resolve_work_item_types(settings: CalendarSettings) -> list[WorkItemType]:
    """Configured work-item types, mapping legacy request types onto one project"""
    if settings.request_types_with_projects:
        return list(settings.request_types_with_projects)

    if settings.request_types:
        names = list(settings.request_types)
    elif settings.request_type:
        names = [settings.request_type]
    else:
        names = []
    project_key = settings.project_key or (
        settings.projects[0] if settings.projects else FALLBACK_PROJECT
    )
    return [
        WorkItemType(
            name=name,
            project_key=project_key,
            label=f"{name} ({project_key})",
            item_type="requestType",
        )
        for name in names
    ]


def _type_condition(item: WorkItemType) -> str:
    if item.item_type == "requestType":
        return f'(project = {item.project_key} AND "request type" = "{item.name}")'
    return f'(project = {item.project_key} AND issuetype = "{item.name}")'


def _validate_range(start_date: str, end_date: str) -> None:
    start = parse_datetime(start_date)
    end = parse_datetime(end_date)
    if start is None or end is None:
        raise InvalidDateRangeError(
            f"Invalid date range: {start_date!r} to {end_date!r}"
        )
    if start > end:
        raise InvalidDateRangeError(
            f"Start date {start_date} is after end date {end_date}"
        )


def build_jql(
    settings: CalendarSettings,
    start_date: str | None = None,
    end_date: str | None = None,
) -> str:
    """JQL selecting the configured work items whose visit starts in the range.

    Without a complete range the last 365 days are searched.

    Raises:
        InvalidDateRangeError: dates are unparseable or reversed
    """
    conditions = [_type_condition(item) for item in resolve_work_item_types(settings)]
    if not conditions:
        projects = settings.projects or [settings.project_key or FALLBACK_PROJECT]
        if len(projects) == 1:
            conditions.append(f"project = {projects[0]}")
        else:
            conditions.append(f"project IN ({', '.join(projects)})")

    if len(conditions) == 1:
        jql = conditions[0]
    else:
        jql = f"({' OR '.join(conditions)})"

    if start_date and end_date:
        _validate_range(start_date, end_date)
    else:
        default_range = default_date_range()
        start_date = default_range["startDate"]
        end_date = default_range["endDate"]
        logger.warning("No date range provided, using default: last 365 days")

    start_field = settings.custom_fields.time_of_visit
    jql += (
        f' AND "{start_field}" >= "{start_date}"'
        f' AND "{start_field}" <= "{end_date}"'
    )
    return jql + " ORDER BY created DESC"


def requested_fields(custom_fields: CustomFieldMapping) -> list[str]:
    """Fields the detail phase asks for, without duplicates"""
    fields = BASE_FIELDS + custom_fields.mapped_field_ids()
    return list(dict.fromkeys(fields))
