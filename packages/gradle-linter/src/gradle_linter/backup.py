import logging
import re
import shutil
import time
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup."
BACKUP_NAME = re.compile(r"^(?P<original>.+)\.backup\.(?P<stamp>\d+)$")


class BackupManager:
    """Timestamped sibling copies of files about to be rewritten"""

    def snapshot(self, file_path: Path) -> Path:
        """Copy file_path to <file_path>.backup.<epoch-millis> and return the copy's path.

        An existing backup is never overwritten: when the name is taken the
        stamp is bumped until a free one is found, so later backups always
        sort after earlier ones.
        """
        file_path = Path(file_path)
        stamp = int(time.time() * 1000)
        while True:
            backup_path = file_path.with_name(f"{file_path.name}{BACKUP_SUFFIX}{stamp}")
            try:
                with open(file_path, "rb") as src, open(backup_path, "xb") as dst:
                    shutil.copyfileobj(src, dst)
                break
            except FileExistsError:
                stamp += 1
        shutil.copystat(file_path, backup_path)
        logger.debug("Backed up %s to %s", file_path, backup_path)
        return backup_path

    def restore(self, backup_path: Path, original_path: Path | None = None) -> bool:
        """Copy a backup over its original and delete the backup.

        Returns False instead of raising when the backup is gone or the copy fails.
        """
        backup_path = Path(backup_path)
        if original_path is None:
            original_path = self.original_for(backup_path)
            if original_path is None:
                logger.warning("Cannot derive original file from backup name %s", backup_path)
                return False

        if not backup_path.is_file():
            logger.warning("Backup %s no longer exists", backup_path)
            return False

        try:
            shutil.copy2(backup_path, original_path)
            backup_path.unlink()
        except OSError as e:
            logger.warning("Error restoring backup %s: %s", backup_path, e)
            return False

        logger.info("Restored %s from %s", original_path, backup_path)
        return True

    def find_backups(self, file_path: Path) -> list[Path]:
        """Existing backups of file_path, newest first"""
        file_path = Path(file_path)
        backups = []
        for candidate in file_path.parent.glob(f"{file_path.name}{BACKUP_SUFFIX}*"):
            match = BACKUP_NAME.match(candidate.name)
            if match and match.group("original") == file_path.name:
                backups.append((int(match.group("stamp")), candidate))
        return [path for _, path in sorted(backups, reverse=True)]

    @staticmethod
    def original_for(backup_path: Path) -> Path | None:
        match = BACKUP_NAME.match(Path(backup_path).name)
        if match is None:
            return None
        return Path(backup_path).with_name(match.group("original"))
