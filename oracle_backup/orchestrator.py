"""
Orchestrator - selects modules, runs them in declared order and reports.

Modules run one at a time. A module failure is recorded in its outcome and
never stops later modules; only failing to create the backup root aborts
the run.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .aggregator import aggregate
from .backup.executor import BackupModule
from .backup.storage import StorageError
from .config import BackupSettings
from .models import AggregatedReport
from .notifier import DeliveryError, WebhookNotifier
from .report import ReportFormatter


logger = logging.getLogger(__name__)

ALL_TOKEN = 'all'


def normalize_module_name(token: str) -> str:
    """'--MariaDB' -> 'mariadb'"""
    return token.strip().lstrip('-').lower()


class Orchestrator:
    """Runs backup modules and routes results to the notifier"""

    def __init__(self, settings: BackupSettings, modules: Dict[str, BackupModule],
                 notifier: WebhookNotifier, formatter: Optional[ReportFormatter] = None):
        """
        Initialize orchestrator.

        Args:
            settings: Application settings
            modules: Ordered mapping of module name to BackupModule
            notifier: Webhook notifier
            formatter: Report formatter (built from settings if omitted)
        """
        self.settings = settings
        self.modules = modules
        self.notifier = notifier
        self.formatter = formatter or ReportFormatter(username=settings.webhook_username)

    def resolve(self, tokens: Optional[Sequence[str]] = None) -> Tuple[List[str], List[str]]:
        """
        Resolve requested tokens to module names.

        No tokens, or an 'all'/'--all' token, selects every module in declared
        order. Otherwise names keep the order given, duplicates are dropped.

        Returns:
            (module names to run, unrecognized tokens)
        """
        normalized = [normalize_module_name(token) for token in tokens or []]

        if not normalized or ALL_TOKEN in normalized:
            return list(self.modules), []

        selected = []
        unknown = []

        for token, name in zip(tokens, normalized):
            if name not in self.modules:
                unknown.append(token)
            elif name not in selected:
                selected.append(name)

        return selected, unknown

    def run(self, tokens: Optional[Sequence[str]] = None) -> AggregatedReport:
        """
        Run the requested modules and send the notification.

        Args:
            tokens: Module names from the command line

        Returns:
            AggregatedReport of the modules that ran

        Raises:
            StorageError: If the backup root directory cannot be created
        """
        selected, unknown = self.resolve(tokens)

        for token in unknown:
            logger.error(f"Unknown module: {token}")
        if unknown:
            logger.info(f"Available modules: {', '.join(self.modules)}")

        if not selected:
            logger.warning("No modules to run.")
            return aggregate({})

        self._ensure_backup_root()

        if len(selected) == len(self.modules):
            logger.info("Starting all backup processes...")

        results = []
        for name in selected:
            results.append((name, self.modules[name].run()))

        report = aggregate(results)
        self.notify(report)

        logger.info(
            f"Backup run finished: {report.success_count} completed, "
            f"{report.failure_count} failed."
        )
        return report

    def notify(self, report: AggregatedReport) -> bool:
        """
        Send the single-module or combined notification for a report.

        Delivery failures are logged and never change backup results.

        Returns:
            True if a notification was delivered
        """
        if not report.per_module:
            return False

        if len(report.per_module) == 1:
            name, outcome = next(iter(report.per_module.items()))
            payload = self.formatter.format_single(outcome, self.modules[name].descriptor)
            logger.info(f"Sending notification for {self.modules[name].descriptor.display_name} backup...")
        else:
            descriptors = {name: self.modules[name].descriptor for name in report.per_module}
            payload = self.formatter.format_combined(report, descriptors)
            logger.info(f"Sending combined notification for {len(report.per_module)} backup modules...")

        try:
            return self.notifier.deliver(payload)
        except DeliveryError as e:
            logger.error(f"Failed to send notification: {e}")
            return False

    def _ensure_backup_root(self):
        try:
            self.settings.backup_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create backup root {self.settings.backup_root}: {e}")
