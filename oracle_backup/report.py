"""
Report formatting for webhook notifications.

Renders one module outcome, or an aggregated report of several, into the
webhook payload: summary content plus one embed per module with a log
tail and the list of available backups.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .backup.storage import StorageError, get_path_size
from .models import AggregatedReport, BackupArtifact, ModuleDescriptor, RunOutcome
from .utils.formatting import GB, MB, format_size


FAILURE_COLOR = 15158332
LOG_TAIL_LINES = 10
MAX_LISTED_ARTIFACTS = 10
MAX_LOG_LINE_LENGTH = 300

DASHED_DATE_RE = re.compile(r'(\d{4})-(\d{2})-(\d{2})')
COMPACT_DATE_RE = re.compile(r'(\d{4})(\d{2})(\d{2})')
DIRECTORY_PREFIX = 'backup_'


def infer_display_date(identifier: str) -> str:
    """
    Derive a DD/MM/YYYY display date from an artifact identifier.

    Rules, first match wins:
    1. a YYYY-MM-DD substring
    2. a YYYYMMDD substring
    3. a 'backup_' prefix: remaining dash separated segments, reversed
    Otherwise the identifier itself is returned.

    Args:
        identifier: Artifact file or directory name

    Returns:
        Display date, e.g. '01/06/2024' for 'mariadb_backup_20240601.tar.gz'
    """
    match = DASHED_DATE_RE.search(identifier) or COMPACT_DATE_RE.search(identifier)
    if match:
        year, month, day = match.groups()
        return f"{day}/{month}/{year}"

    if identifier.startswith(DIRECTORY_PREFIX) and len(identifier) > len(DIRECTORY_PREFIX):
        segments = identifier[len(DIRECTORY_PREFIX):].split('-')
        return '/'.join(reversed(segments))

    return identifier


def _listing_size(num_bytes: int) -> str:
    if num_bytes > GB:
        return f"{num_bytes / GB:.2f} GB"
    return f"{num_bytes / MB:.2f} MB"


def _resolve_size(artifact: BackupArtifact) -> Optional[int]:
    if artifact.size_bytes is not None:
        return artifact.size_bytes
    try:
        return get_path_size(artifact.path)
    except StorageError:
        return None


def render_artifact(artifact: BackupArtifact) -> str:
    """Render one listing entry: '- 📄 01/06/2024 (12.34 MB)'."""
    display = infer_display_date(artifact.identifier)

    if not artifact.path.exists():
        return f"- {display}"

    icon = '📁' if artifact.is_directory else '📄'
    size = _resolve_size(artifact)
    if size is None:
        return f"- {icon} {display}"
    return f"- {icon} {display} ({_listing_size(size)})"


def render_artifact_listing(artifacts: Sequence[BackupArtifact]) -> str:
    """
    Render up to ten artifacts (newest first), sorted by display string.

    The lexicographic order is display only; retention order is unaffected.
    """
    lines = [render_artifact(artifact) for artifact in artifacts[:MAX_LISTED_ARTIFACTS]]
    return '\n'.join(sorted(lines))


def summary_line(report: AggregatedReport) -> str:
    """'N completed', with ', M failed' appended only when M > 0."""
    line = f"{report.success_count} completed"
    if report.failure_count > 0:
        line += f", {report.failure_count} failed"
    return line


@dataclass
class NotificationPayload:
    """Webhook message body"""

    content: str
    embeds: List[Dict[str, Any]] = field(default_factory=list)
    username: str = 'Oracle Backup'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'content': self.content,
            'embeds': self.embeds,
            'username': self.username,
            'attachments': [],
        }


class ReportFormatter:
    """Builds notification payloads for single and multi-module runs"""

    def __init__(self, username: str = 'Oracle Backup'):
        self.username = username

    def format_single(self, outcome: RunOutcome, descriptor: ModuleDescriptor) -> NotificationPayload:
        """Payload for a run of exactly one module."""
        name = descriptor.display_name

        if outcome.success:
            content = f"✅ Completed {name} Backup\n{self._size_line(outcome)}"
        else:
            content = f"❌ {name} Backup Failed\n⚠️ Error: `{outcome.error}`"

        embed = self._embed(outcome, descriptor, title=f"Backup {outcome.status} (Size: `{self._size_text(outcome)}`)")
        return NotificationPayload(content=content, embeds=[embed], username=self.username)

    def format_combined(self, report: AggregatedReport,
                        descriptors: Mapping[str, ModuleDescriptor]) -> NotificationPayload:
        """Payload for several modules, one embed each in run order."""
        embeds = []

        for module_name, outcome in report.per_module.items():
            descriptor = descriptors[module_name]
            title = (
                f"{descriptor.display_name} Backup {outcome.status} "
                f"(Size: `{self._size_text(outcome)}`)"
            )
            embeds.append(self._embed(outcome, descriptor, title=title))

        icon = '✅' if report.failure_count == 0 else '⚠️'
        content = f"{icon} Backup Summary: {summary_line(report)}"
        return NotificationPayload(content=content, embeds=embeds, username=self.username)

    def _embed(self, outcome: RunOutcome, descriptor: ModuleDescriptor, title: str) -> Dict[str, Any]:
        return {
            'title': title,
            'description': self._description(outcome, descriptor),
            'color': descriptor.color if outcome.success else FAILURE_COLOR,
            'author': {
                'name': descriptor.display_name,
                'icon_url': descriptor.icon_url,
            },
        }

    def _description(self, outcome: RunOutcome, descriptor: ModuleDescriptor) -> str:
        log_tail = '\n'.join(
            line[:MAX_LOG_LINE_LENGTH] for line in outcome.logs[-LOG_TAIL_LINES:]
        )
        listing = render_artifact_listing(outcome.artifacts) or 'No backups found'
        limit = descriptor.retention_limit
        current = min(len(outcome.artifacts), limit)

        return (
            f"**Logs:**\n```\n{log_tail}\n```\n"
            f"**Backups Available:**\n{listing}\n"
            f"Max {limit}, Currently {current} backups"
        )

    @staticmethod
    def _size_text(outcome: RunOutcome) -> str:
        if outcome.size_after is not None:
            return format_size(outcome.size_after)
        return 'n/a' if outcome.success else 'FAILED'

    @staticmethod
    def _size_line(outcome: RunOutcome) -> str:
        after = ReportFormatter._size_text(outcome)
        if outcome.size_before is not None:
            return f"💽 Size (Unzipped): `{after}` (`{format_size(outcome.size_before)}`)"
        return f"💽 Size: `{after}`"
