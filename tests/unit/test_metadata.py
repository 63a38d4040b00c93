"""Tests for Jira metadata lookups"""

import pytest

from jira_calendar.calendar.metadata import JiraMetadataClient, issue_url
from jira_calendar.utils.errors import CalendarError, JiraAPIError


class FakeMetadataTransport:
    def __init__(self, **responses):
        self.responses = responses
        self.calls: list[tuple] = []

    async def _answer(self, name, *args):
        self.calls.append((name, *args))
        response = self.responses[name]
        if callable(response):
            response = response(*args)
        if isinstance(response, BaseException):
            raise response
        return response

    async def server_info(self):
        return await self._answer("server_info")

    async def project_search(self, start_at, max_results):
        return await self._answer("project_search", start_at, max_results)

    async def project(self, project_key):
        return await self._answer("project", project_key)

    async def project_statuses(self, project_key):
        return await self._answer("project_statuses", project_key)

    async def fields(self):
        return await self._answer("fields")

    async def service_desk_request_types(self, project_id):
        return await self._answer("service_desk_request_types", project_id)


def _project(i: int) -> dict:
    return {"id": str(i), "key": f"P{i}", "name": f"Project {i:04d}"}


@pytest.mark.asyncio
async def test_base_url_and_issue_url(retry_policy):
    client = JiraMetadataClient(
        FakeMetadataTransport(server_info={"baseUrl": "https://acme.atlassian.net/"}),
        retry_policy,
    )

    base = await client.get_base_url()

    assert base == "https://acme.atlassian.net/"
    assert issue_url(base, "VIS-1") == "https://acme.atlassian.net/browse/VIS-1"


@pytest.mark.asyncio
async def test_missing_base_url_is_an_error(retry_policy):
    client = JiraMetadataClient(FakeMetadataTransport(server_info={}), retry_policy)

    with pytest.raises(CalendarError):
        await client.get_base_url()


class TestSearchProjects:
    @pytest.mark.asyncio
    async def test_paginates_by_total(self, retry_policy):
        def page(start_at, max_results):
            values = [_project(i) for i in range(start_at, min(start_at + 50, 120))]
            return {"values": values, "total": 120}

        transport = FakeMetadataTransport(project_search=page)
        projects = await JiraMetadataClient(transport, retry_policy).search_projects()

        assert len(projects) == 120
        assert [call[1] for call in transport.calls] == [0, 50, 100]
        assert projects[0].name == "Project 0000"

    @pytest.mark.asyncio
    async def test_paginates_by_is_last_and_dedupes(self, retry_policy):
        pages = {
            0: {"values": [_project(2), _project(1)], "isLast": False},
            50: {"values": [_project(1), _project(3)], "isLast": True},
        }
        transport = FakeMetadataTransport(project_search=lambda s, _: pages[s])

        projects = await JiraMetadataClient(transport, retry_policy).search_projects()

        assert [p.key for p in projects] == ["P1", "P2", "P3"]

    @pytest.mark.asyncio
    async def test_short_page_stops_without_paging_hints(self, retry_policy):
        transport = FakeMetadataTransport(
            project_search={"values": [_project(1)]}
        )

        await JiraMetadataClient(transport, retry_policy).search_projects()

        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_safety_cap(self, retry_policy):
        def endless(start_at, max_results):
            return {"values": [_project(start_at + i) for i in range(50)]}

        transport = FakeMetadataTransport(project_search=endless)
        projects = await JiraMetadataClient(transport, retry_policy).search_projects()

        assert len(transport.calls) == 20
        assert len(projects) == 1000


@pytest.mark.asyncio
async def test_workflow_statuses(retry_policy):
    statuses = [
        {
            "name": "Visit",
            "statuses": [
                {
                    "id": "1",
                    "name": "Open",
                    "statusCategory": {"key": "new", "name": "To Do"},
                },
                {
                    "id": "2",
                    "name": "Done",
                    "statusCategory": {"key": "done", "name": "Done"},
                },
            ],
        },
        {
            "name": "Task",
            "statuses": [
                {"id": "1", "name": "Open", "statusCategory": {"key": "new"}},
                {"id": "3", "name": "Odd"},
            ],
        },
    ]
    client = JiraMetadataClient(
        FakeMetadataTransport(project_statuses=statuses), retry_policy
    )

    all_statuses = await client.fetch_workflow_statuses("VIS")
    visit_only = await client.fetch_workflow_statuses("VIS", "Visit")

    assert [(s.id, s.category, s.category_name) for s in all_statuses] == [
        ("1", "new", "To Do"),
        ("2", "done", "Done"),
        ("3", "undefined", "Unknown"),
    ]
    assert [s.id for s in visit_only] == ["1", "2"]


@pytest.mark.asyncio
async def test_custom_fields_only(retry_policy):
    fields = [
        {"id": "summary", "name": "Summary", "schema": {"type": "string"}},
        {"id": "customfield_2", "name": "Site", "schema": {"type": "option"}},
        {"id": "customfield_1", "name": "End time"},
    ]
    client = JiraMetadataClient(FakeMetadataTransport(fields=fields), retry_policy)

    result = await client.fetch_custom_fields()

    assert [(f.id, f.name, f.type) for f in result] == [
        ("customfield_1", "End time", "unknown"),
        ("customfield_2", "Site", "option"),
    ]


class TestProjectTypes:
    @pytest.mark.asyncio
    async def test_service_desk_project(self, retry_policy):
        transport = FakeMetadataTransport(
            project={"id": "10000", "issueTypes": []},
            service_desk_request_types={
                "values": [
                    {"id": "2", "name": "Visit", "description": "On-site"},
                    {"id": "1", "name": "Access"},
                ]
            },
        )
        client = JiraMetadataClient(transport, retry_policy)

        request_types = await client.fetch_request_types("VIS")

        assert [(t.name, t.type) for t in request_types] == [
            ("Access", "requestType"),
            ("Visit", "requestType"),
        ]
        assert ("service_desk_request_types", "10000") in transport.calls
        assert await client.detect_project_type("VIS") == "JSM"

    @pytest.mark.asyncio
    async def test_plain_project(self, retry_policy):
        transport = FakeMetadataTransport(
            project={
                "id": "10001",
                "issueTypes": [{"id": "5", "name": "Task"}, {"id": "4", "name": "Bug"}],
            },
            service_desk_request_types=JiraAPIError(404),
        )
        client = JiraMetadataClient(transport, retry_policy)

        assert await client.fetch_request_types("OPS") is None
        assert await client.detect_project_type("OPS") == "Jira"
        assert [t.name for t in await client.fetch_issue_types("OPS")] == [
            "Bug",
            "Task",
        ]
