"""
Producers for each backed-up service.

A producer knows how to create one run's artifacts in its module's storage
location:
- MariaDbProducer: mariadb-backup snapshot, compressed to tar.gz
- TimescaleDbProducer: pg_dump of each database inside a container
- NginxProducer: tar.gz of the nginx configuration directory
- PterodactylProducer: panel env file plus one tar.gz per game server volume
"""

import math
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..config import BackupSettings
from ..models import BackupArtifact, ModuleDescriptor
from ..utils.formatting import MB, format_size
from .commands import CommandRunner
from .compression import create_archive, gzip_file
from .errors import BackupError, PrerequisiteUnavailable, StepFailed
from .storage import LocalStorage, get_path_size


LogFn = Callable[[str], None]


@dataclass
class ProduceResult:
    """Measurements and sub-unit failures from one producer run"""

    size_before: Optional[int] = None
    size_after: Optional[int] = None
    unit_count: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)


class Producer:
    """
    Base class for service producers.

    Subclasses implement produce(); list_artifacts() covers the common
    file-pattern case.
    """

    def __init__(self, descriptor: ModuleDescriptor, settings: BackupSettings,
                 commands: CommandRunner, storage: Optional[LocalStorage] = None):
        self.descriptor = descriptor
        self.settings = settings
        self.commands = commands
        self.storage = storage or LocalStorage(descriptor.storage_location)

    @property
    def backup_dir(self) -> Path:
        return self.storage.base_path

    def produce(self, log: LogFn) -> ProduceResult:
        raise NotImplementedError

    def list_artifacts(self) -> List[BackupArtifact]:
        return self.storage.list_artifacts(self.descriptor.naming_pattern)


class MariaDbProducer(Producer):
    """Full physical backup with mariadb-backup, prepared and compressed."""

    def produce(self, log: LogFn) -> ProduceResult:
        backup_name = f"mariadb_backup_{datetime.now():%Y%m%d}"
        target_dir = self.backup_dir / backup_name
        binary = self.settings.mariadb_backup_bin

        if target_dir.exists():
            log(f"Removing stale uncompressed backup: {backup_name}")
            self.commands.run(['rm', '-rf', str(target_dir)], step='Stale backup removal', privileged=True)

        log('Creating full backup...')
        self.commands.run(
            [binary, '--backup', f'--target-dir={target_dir}'],
            step='mariadb-backup --backup',
            privileged=True
        )

        log('Preparing backup...')
        self.commands.run(
            [binary, '--prepare', f'--target-dir={target_dir}'],
            step='mariadb-backup --prepare',
            privileged=True
        )

        log('Compressing backup...')
        self.commands.take_ownership(self.backup_dir)

        size_before = get_path_size(target_dir)
        archive_path = create_archive([target_dir], self.backup_dir / backup_name, 'tar.gz')
        size_after = get_path_size(archive_path)

        shutil.rmtree(target_dir)

        log(
            f"Backup completed: {Path(archive_path).name} "
            f"(Size: {format_size(size_before)} -> {format_size(size_after)})"
        )
        return ProduceResult(size_before=size_before, size_after=size_after, unit_count=1)


class TimescaleDbProducer(Producer):
    """SQL dumps of each configured database, taken through docker exec."""

    def produce(self, log: LogFn) -> ProduceResult:
        container = self.settings.timescaledb_container
        databases = self.settings.timescaledb_databases
        timestamp = f"{datetime.now():%Y%m%d}"

        if not self.commands.container_running(container):
            raise PrerequisiteUnavailable(f"TimescaleDB container '{container}' is not running.")

        result = ProduceResult(size_after=0, unit_count=len(databases))

        for database in databases:
            log(f"Processing database: {database}")

            db_dir = self.backup_dir / timestamp / database
            db_dir.mkdir(parents=True, exist_ok=True)
            dump_file = db_dir / f"{database}_{timestamp}.sql.gz"

            try:
                self.commands.run_to_gzip(
                    ['docker', 'exec', container, 'pg_dump', '-C', database],
                    dump_file,
                    step=f"pg_dump {database}",
                    privileged=True
                )
            except StepFailed as e:
                result.failures.append((database, str(e)))
                log(f"Failed to back up {database}: {e}")
                continue

            size = get_path_size(dump_file)
            result.size_after += size
            log(f"{database} backup completed: {dump_file.name} (Size: {format_size(size)})")

        completed = len(databases) - len(result.failures)
        log(f"Total backups: {completed}, Total size: {format_size(result.size_after)}")
        return result


class NginxProducer(Producer):
    """Archive of the nginx configuration directory."""

    def produce(self, log: LogFn) -> ProduceResult:
        nginx_dir = self.settings.nginx_dir
        archive_base = self.backup_dir / f"nginx_backup_{datetime.now():%Y-%m-%d}"

        if not nginx_dir.is_dir():
            raise PrerequisiteUnavailable(f"Nginx directory not found: {nginx_dir}")

        size_before = get_path_size(nginx_dir)
        log(f"Original size of {nginx_dir}: {format_size(size_before)}")

        log(f"Creating backup archive: {archive_base.name}.tar.gz")
        archive_path = create_archive([nginx_dir], archive_base, 'tar.gz')
        size_after = get_path_size(archive_path)

        log(
            f"Backup completed: {Path(archive_path).name} "
            f"(Size: {format_size(size_before)} -> {format_size(size_after)})"
        )
        return ProduceResult(size_before=size_before, size_after=size_after, unit_count=1)


class PterodactylProducer(Producer):
    """Panel environment file and every game server volume under the size threshold."""

    DIRECTORY_PREFIX = 'backup_'

    def produce(self, log: LogFn) -> ProduceResult:
        volumes_dir = self.settings.pterodactyl_volumes_dir
        threshold_mb = self.settings.pterodactyl_size_threshold_mb
        output_dir = self.backup_dir / f"{self.DIRECTORY_PREFIX}{datetime.now():%Y-%m-%d}"

        if not volumes_dir.is_dir():
            raise PrerequisiteUnavailable(f"Pterodactyl volumes directory not found: {volumes_dir}")

        output_dir.mkdir(parents=True, exist_ok=True)
        result = ProduceResult(size_before=0, size_after=0)

        log('Backing up Pterodactyl environment file...')
        result.unit_count += 1
        try:
            shutil.copy2(self.settings.pterodactyl_env_file, output_dir / 'panel.env')
            log('Environment file backed up successfully.')
        except OSError as e:
            result.failures.append(('panel.env', str(e)))
            log(f"Failed to backup environment file: {e}")

        log(f"Creating archives for folders under {threshold_mb}MB...")

        for folder in sorted(p for p in volumes_dir.iterdir() if p.is_dir()):
            try:
                folder_size = get_path_size(folder)
            except BackupError as e:
                result.unit_count += 1
                result.failures.append((folder.name, str(e)))
                log(f"Failed to measure {folder.name}: {e}")
                continue

            folder_mb = math.ceil(folder_size / MB)
            if folder_mb >= threshold_mb:
                log(f"Skipping {folder.name} (Size: {folder_mb}MB, over threshold)")
                continue

            result.unit_count += 1
            log(f"Creating archive for {folder.name} (Size: {folder_mb}MB)")

            try:
                tar_path = create_archive([folder], output_dir / folder.name, 'none')
                tar_size = get_path_size(tar_path)
                compressed_path = gzip_file(tar_path, level=9)
                compressed_size = get_path_size(compressed_path)
            except BackupError as e:
                result.failures.append((folder.name, str(e)))
                log(f"Failed to create archive for {folder.name}: {e}")
                continue

            result.size_before += folder_size
            result.size_after += compressed_size
            log(
                f"Compressed {Path(compressed_path).name} "
                f"(Size: {format_size(tar_size)} -> {format_size(compressed_size)})"
            )

        log(f"All folders under {threshold_mb}MB have been archived and compressed.")
        log(f"Total size: {format_size(result.size_before)} -> {format_size(result.size_after)}")
        return result

    def list_artifacts(self) -> List[BackupArtifact]:
        return self.storage.list_directories(self.DIRECTORY_PREFIX)


PRODUCERS = {
    'mariadb': MariaDbProducer,
    'timescaledb': TimescaleDbProducer,
    'nginx': NginxProducer,
    'pterodactyl': PterodactylProducer,
}


def create_producer(descriptor: ModuleDescriptor, settings: BackupSettings,
                    commands: CommandRunner) -> Producer:
    """
    Factory function to create the producer for a module.

    Args:
        descriptor: Module descriptor; its name selects the producer
        settings: Application settings
        commands: Runner for external steps

    Returns:
        Producer instance

    Raises:
        ValueError: If no producer exists for the module
    """
    producer_cls = PRODUCERS.get(descriptor.name)
    if producer_cls is None:
        raise ValueError(f"Invalid module: {descriptor.name}. Must be one of {list(PRODUCERS)}")
    return producer_cls(descriptor, settings, commands)
