"""Pipe-delimited commit report."""

from typing import List, TextIO

from commitwindow.models import Commit, RepositoryReport, ScanResult

DELIMITER = "|"
DELIMITER_REPLACEMENT = "/"


def _field(value: str) -> str:
    return value.replace(DELIMITER, DELIMITER_REPLACEMENT)


def format_commit_line(owner: str, commit: Commit) -> str:
    """Format one commit as ``owner|repo|branch|hash|DD/MM/YYYY|author|message|``.

    A delimiter inside any field is replaced so every line keeps seven fields.
    """
    fields = [
        owner,
        commit.repo_name,
        commit.branch or "",
        commit.full_hash,
        commit.short_date,
        commit.raw_author,
        commit.message,
    ]
    return DELIMITER.join(_field(value) for value in fields) + DELIMITER


class ReportWriter:
    """Renders scan results line by line."""

    def render_repository(self, report: RepositoryReport) -> List[str]:
        """Render the header, optional error and commit lines of one repository."""
        lines = [f"=== Repo: {report.owner}/{report.name}, Commits: {len(report.commits)} ==="]
        if report.error:
            lines.append(f"  ERROR: {report.error}")
        lines.extend(format_commit_line(report.owner, commit) for commit in report.commits)
        return lines

    def render(self, result: ScanResult) -> List[str]:
        """Render every repository, separated by blank lines, then skipped ones."""
        lines: List[str] = []
        for report in result.reports:
            lines.extend(self.render_repository(report))
            lines.append("")

        for skipped in result.skipped:
            lines.append(f"  SKIPPED: {skipped.owner}/{skipped.name}: {skipped.error}")

        return lines

    def write(self, result: ScanResult, stream: TextIO) -> int:
        """Write the rendered report to ``stream``.

        Returns:
            Number of lines written
        """
        lines = self.render(result)
        for line in lines:
            stream.write(line + "\n")
        return len(lines)
