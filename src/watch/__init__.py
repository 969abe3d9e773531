"""File change detection for watched workspaces."""

from watch.poller import PollingWatcher, detect_changes, scan_disk_mtimes

__all__ = ["PollingWatcher", "detect_changes", "scan_disk_mtimes"]
