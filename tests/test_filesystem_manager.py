import os

import pytest

from archbtrfs import config
from archbtrfs.errors import DeviceBusy, UnexpectedMountState
from archbtrfs.filesystem_manager import FilesystemManager
from archbtrfs.models import BlockDevice, FsType, MountRecord

from conftest import FakeFormatter, FakeMountController, FakeProbe, FakeSwapController


def _manager(mounts, probe=None, formatter=None, target="/mnt"):
    sleeps = []
    manager = FilesystemManager(
        formatter=formatter or FakeFormatter(),
        mounts=mounts,
        swap=FakeSwapController(),
        probe=probe or FakeProbe(),
        target=target,
        sleep=sleeps.append,
    )
    return manager, sleeps


def test_formats_boot_fat32_and_root_btrfs(sda_devices):
    formatter = FakeFormatter()
    manager, sleeps = _manager(FakeMountController(), FakeProbe(sda_devices), formatter)

    manager.format_partitions("/dev/sda1", "/dev/sda2")

    assert formatter.calls == [("mkfs.fat", "/dev/sda1"), ("mkfs.btrfs", "/dev/sda2")]
    assert sleeps == [config.SETTLE_DELAY_SECONDS]
    assert ("swapoff", "-a") in manager.swap.calls


def test_refuses_to_format_mounted_root(sda_devices):
    mounts = FakeMountController([MountRecord("/dev/sda2", "/srv/data")], stuck={"/srv/data"})
    formatter = FakeFormatter()
    manager, _ = _manager(mounts, FakeProbe(sda_devices), formatter)

    with pytest.raises(DeviceBusy) as excinfo:
        manager.format_partitions("/dev/sda1", "/dev/sda2")

    assert excinfo.value.device == "/dev/sda2"
    assert excinfo.value.mountpoints == ["/srv/data"]
    assert formatter.calls == []


def test_refuses_when_boot_still_mounted(sda_devices):
    mounts = FakeMountController([MountRecord("/dev/sda1", "/efi")], stuck={"/efi"})
    formatter = FakeFormatter()
    manager, _ = _manager(mounts, FakeProbe(sda_devices), formatter)

    with pytest.raises(DeviceBusy, match="/dev/sda1"):
        manager.format_partitions("/dev/sda1", "/dev/sda2")
    assert formatter.calls == []


def test_unmounts_devices_directly(sda_devices):
    mounts = FakeMountController([
        MountRecord("/dev/sda1", "/efi"),
        MountRecord("/dev/sda2", "/data"),
    ])
    manager, _ = _manager(mounts, FakeProbe(sda_devices))

    manager.format_partitions("/dev/sda1", "/dev/sda2")

    assert mounts.unmount_calls[:2] == ["/dev/sda1", "/dev/sda2"]
    assert mounts.records == []


def test_unmounts_leftover_btrfs_subvolumes_deepest_first():
    devices = [BlockDevice("/dev/sda1", FsType.FAT32), BlockDevice("/dev/sda2", FsType.BTRFS)]
    mounts = FakeMountController([
        MountRecord("/dev/sda2", "/old"),
        MountRecord("/dev/sda2", "/old/home"),
        MountRecord("/dev/sda2", "/old/var/log"),
    ])
    manager, _ = _manager(mounts, FakeProbe(devices))

    manager.format_partitions("/dev/sda1", "/dev/sda2")

    # the direct device unmount takes the most recent mount first
    assert mounts.unmount_calls == ["/dev/sda1", "/dev/sda2", "/old/home", "/old"]
    assert mounts.records == []


def test_recursively_unmounts_target_left_mounted(sda_devices):
    mounts = FakeMountController([
        MountRecord("tmpfs", "/mnt"),
        MountRecord("tmpfs", "/mnt/boot"),
    ])
    manager, sleeps = _manager(mounts, FakeProbe(sda_devices))

    manager.format_partitions("/dev/sda1", "/dev/sda2")

    assert ("-R", "/mnt") in mounts.unmount_calls
    assert sleeps == [config.SETTLE_DELAY_SECONDS, config.REMOUNT_SETTLE_SECONDS]


def test_creates_all_subvolumes_at_scratch_mount():
    mounts = FakeMountController()
    formatter = FakeFormatter()
    manager, _ = _manager(mounts, formatter=formatter)

    created = manager.create_subvolumes("/dev/sda2")

    expected = ["@", "@home", "@srv", "@var_log", "@var_cache", "@snapshots", "@swap"]
    assert created == expected
    assert sorted(name for _, name in formatter.calls) == sorted(expected)

    scratch = mounts.mount_calls[0][1]
    assert mounts.unmount_calls == [scratch]
    assert mounts.records == []
    assert not os.path.exists(scratch)


def test_subvolume_failure_aborts_and_cleans_scratch():
    mounts = FakeMountController()
    formatter = FakeFormatter(fail_subvolume="@var_log")
    manager, _ = _manager(mounts, formatter=formatter)

    with pytest.raises(UnexpectedMountState, match="@var_log"):
        manager.create_subvolumes("/dev/sda2")

    scratch = mounts.mount_calls[0][1]
    assert mounts.unmount_calls == [scratch]
    assert not os.path.exists(scratch)


def test_scratch_mount_failure(tmp_path, monkeypatch):
    import tempfile
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "mkdtemp", lambda prefix=None: str(scratch))

    mounts = FakeMountController(fail_mount={str(scratch)})
    manager, _ = _manager(mounts)

    with pytest.raises(UnexpectedMountState, match="Failed to mount /dev/sda2"):
        manager.create_subvolumes("/dev/sda2")
    assert not scratch.exists()


def test_scratch_unmount_failure_keeps_subvolume_error(tmp_path, monkeypatch, capsys):
    import tempfile
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "mkdtemp", lambda prefix=None: str(scratch))

    mounts = FakeMountController(fail_unmount={str(scratch)})
    manager, _ = _manager(mounts, formatter=FakeFormatter(fail_subvolume="@srv"))

    with pytest.raises(UnexpectedMountState, match="@srv"):
        manager.create_subvolumes("/dev/sda2")

    assert f"Warning: Failed to unmount {scratch}" in capsys.readouterr().out
    # still mounted, so the directory is left in place
    assert scratch.exists()
