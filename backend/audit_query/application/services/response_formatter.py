"""Response formatter: turns findings and AI text into display-ready markdown."""

from audit_query.domain.entities import AuditFinding, ErrorCode

_SIMPLE_PREVIEW = 10
_SOURCE_PREVIEW = 5

NO_RESULTS_MESSAGE = (
    "No audit results match your search criteria.\n\n"
    "Try broadening your search by:\n"
    "- removing some filters\n"
    "- using different keywords\n"
    "- expanding the date range"
)

_ERROR_MESSAGES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.DATABASE_ERROR: (
        "Unable to search findings.",
        "Please try again in a moment.",
    ),
    ErrorCode.AI_ERROR: (
        "AI analysis unavailable.",
        "Showing database results only. Try again later for an AI analysis.",
    ),
    ErrorCode.CLASSIFICATION_ERROR: (
        "Unable to process query.",
        "Please try rephrasing your question.",
    ),
    ErrorCode.TIMEOUT_ERROR: (
        "The query took too long to answer.",
        "Try a narrower question, e.g. add a year or a department.",
    ),
    ErrorCode.PATTERN_VALIDATION_ERROR: (
        "Query pattern configuration is invalid.",
        "Check the pattern definition and register it again.",
    ),
    ErrorCode.NO_RESULTS: (
        "No audit results match your search criteria.",
        "Try removing some filters, using different keywords or expanding the date range.",
    ),
}


class ResponseFormatter:
    """Formats router results as markdown for the chat UI."""

    def format_simple(self, findings: list[AuditFinding]) -> str:
        if not findings:
            return NO_RESULTS_MESSAGE
        count = len(findings)
        lines = [f"Found **{count}** finding{'s' if count != 1 else ''} matching your criteria.", ""]
        for i, finding in enumerate(findings[:_SIMPLE_PREVIEW], 1):
            lines.append(self.format_finding_line(i, finding))
        if count > _SIMPLE_PREVIEW:
            lines.append(f"\n... and {count - _SIMPLE_PREVIEW} more")
        return "\n".join(lines)

    def format_complex(self, ai_text: str, sources: list[AuditFinding]) -> str:
        if not sources:
            return ai_text
        lines = [ai_text.rstrip(), "", "---", "**Source Findings Referenced:**"]
        for finding in sources[:_SOURCE_PREVIEW]:
            topic = finding.risk_area or finding.department
            lines.append(f"- [{finding.id}] {finding.project_name} ({finding.year}): {topic}")
        if len(sources) > _SOURCE_PREVIEW:
            lines.append(f"- ... and {len(sources) - _SOURCE_PREVIEW} more")
        return "\n".join(lines)

    def format_hybrid(self, findings: list[AuditFinding], ai_text: str | None) -> str:
        analysis = ai_text.strip() if ai_text else (
            "_AI analysis unavailable. Showing database results only._"
        )
        return "\n".join([
            "## Database Results",
            "",
            self.format_simple(findings),
            "",
            "## AI Analysis",
            "",
            analysis,
        ])

    @staticmethod
    def format_finding_line(index: int, finding: AuditFinding) -> str:
        summary = finding.description or finding.risk_area or "(no description)"
        if len(summary) > 120:
            summary = summary[:117] + "..."
        return (
            f"{index}. **{finding.project_name}** ({finding.year}) · {finding.department} · "
            f"{finding.severity.value} ({finding.risk_score:g}) · {finding.status}\n"
            f"   {summary}"
        )

    @staticmethod
    def error_text(code: ErrorCode, detail: str | None = None) -> tuple[str, str]:
        """Return ``(message, suggestion)`` for an error code."""
        message, suggestion = _ERROR_MESSAGES[code]
        if detail:
            message = f"{message} {detail}"
        return message, suggestion
