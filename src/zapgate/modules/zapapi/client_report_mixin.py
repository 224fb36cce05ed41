"""Export add-on and defect-tracker add-on endpoints."""

from .responses import element_value, list_items


def _flag(value: bool) -> str:
    return "1" if value else "0"


class ClientReportMixin:
    async def export_formats(self) -> list[str]:
        response = await self.call("exportreport", "view", "formats")
        return [element_value(item).strip().lower() for item in list_items(response)]

    async def export_generate(
        self,
        absolute_path: str,
        extension: str,
        source_details: str,
        alert_severity: str,
        alert_details: str,
    ) -> str:
        response = await self.call(
            "exportreport",
            "action",
            "generate",
            {
                "absolutePath": absolute_path,
                "fileExtension": extension,
                "sourceDetails": source_details,
                "alertSeverity": alert_severity,
                "alertDetails": alert_details,
            },
        )
        return element_value(response)

    async def create_jira_issues(
        self,
        base_url: str,
        username: str,
        password: str,
        project_key: str,
        assignee: str,
        high: bool,
        medium: bool,
        low: bool,
        filter_by_resource_type: bool,
    ):
        return await self.call(
            "jiraIssueCreater",
            "action",
            "createJiraIssues",
            {
                "jiraBaseURL": base_url,
                "jiraUserName": username,
                "jiraPassword": password,
                "projectKey": project_key,
                "assignee": assignee,
                "high": _flag(high),
                "medium": _flag(medium),
                "low": _flag(low),
                "filterIssuesByResourceType": _flag(filter_by_resource_type),
            },
        )
