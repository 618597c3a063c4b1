from datetime import datetime

from pathrepair.config import AppConfig
from pathrepair.core.backup import BackupManager, resolve_backup_dir
from pathrepair.types import RepairPlan


def _clock(value: datetime):
    return lambda: value


def test_snapshot_writes_raw_values(tmp_path):
    manager = BackupManager(tmp_path / "backups", clock=_clock(datetime(2026, 3, 1, 8, 30, 5)))
    result = manager.snapshot({"system": "C:\\Windows;C:\\Windows", "user": ""})
    assert result.files["system"].endswith("SystemPATH_backup_20260301_083005.txt")
    assert (tmp_path / "backups" / "SystemPATH_backup_20260301_083005.txt").read_text(
        encoding="utf-8"
    ) == "C:\\Windows;C:\\Windows\n"
    assert (tmp_path / "backups" / "UserPATH_backup_20260301_083005.txt").read_text(encoding="utf-8") == "\n"


def test_write_final_lists_one_directory_per_line(tmp_path):
    manager = BackupManager(tmp_path, clock=_clock(datetime(2026, 3, 1, 8, 30, 5)))
    plan = RepairPlan(
        system_entries=["C:\\Windows\\System32", "C:\\Windows"],
        user_entries=["C:\\Users\\me\\bin"],
        system_value="C:\\Windows\\System32;C:\\Windows",
        user_value="C:\\Users\\me\\bin",
        scopes=["system"],
    )
    written = manager.write_final(plan)
    assert [path.name for path in written] == ["SystemPATH_final_20260301_083005.txt"]
    assert written[0].read_text(encoding="utf-8").splitlines() == ["C:\\Windows\\System32", "C:\\Windows"]


def test_latest_backup_and_read_back(tmp_path):
    older = BackupManager(tmp_path, clock=_clock(datetime(2026, 1, 1, 0, 0, 0)))
    newer = BackupManager(tmp_path, clock=_clock(datetime(2026, 2, 1, 0, 0, 0)))
    older.snapshot({"system": "old", "user": "old-user"})
    newer.snapshot({"system": "new", "user": "new-user"})
    latest = newer.latest_backup("system")
    assert latest is not None
    assert latest.name == "SystemPATH_backup_20260201_000000.txt"
    assert BackupManager.read_backup(latest) == "new"


def test_latest_backup_without_directory(tmp_path):
    assert BackupManager(tmp_path / "absent").latest_backup("user") is None


def test_resolve_backup_dir_uses_placeholders(tmp_path):
    cfg = AppConfig.parse_obj({"backup": {"directory": "{USERPROFILE}/PATH_Backups"}})
    lookup = {"USERPROFILE": str(tmp_path)}.get
    assert resolve_backup_dir(cfg, lookup) == tmp_path / "PATH_Backups"


def test_resolve_backup_dir_falls_back_to_home(tmp_path):
    cfg = AppConfig.parse_obj({"backup": {"directory": "{UNSET_VARIABLE}/backups"}})
    lookup = {"USERPROFILE": str(tmp_path)}.get
    assert resolve_backup_dir(cfg, lookup) == tmp_path / "PATH_Backups"
