"""
watcher.py — Hot reload of the asset registry using watchdog.

Every directory that holds a known source file gets a non-recursive
watch. A change to a file rehashes (or drops) that one entry; a change that
turns out to be a directory triggers a full reindex because existing
watches cannot see files moved into new directories.
"""
import os
import logging

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from assets.errors import DiscoveryError
from assets.signals import asset_changed
from assets.utils import TEMP_PREFIX

logger = logging.getLogger("assetpipe")

WATCHED_EVENTS = {"created", "modified", "deleted", "moved"}


class _DirectoryHandler(FileSystemEventHandler):
    def __init__(self, watcher, directory):
        self.watcher = watcher
        self.directory = directory

    def on_any_event(self, event):
        if event.event_type not in WATCHED_EVENTS:
            return
        paths = [event.src_path]
        if getattr(event, "dest_path", None):
            paths.append(event.dest_path)
        for path in paths:
            path = os.fsdecode(path)
            # Changes to the watched directory itself carry no file name.
            if os.path.abspath(path) == os.path.abspath(self.directory):
                continue
            self.watcher.handle(path)


class AssetWatcher:
    """Keeps an AssetManager's registry in sync with the filesystem."""

    def __init__(self, manager):
        self.manager = manager
        self.registry = manager.registry
        self.observer = None
        self.watched = []

    @property
    def running(self):
        return self.observer is not None

    def start(self):
        if self.observer is None:
            self.observer = Observer()
            self.observer.daemon = True
            self.observer.start()
        self._schedule()
        logger.info(f"Watching {len(self.watched)} directories in {self.registry.directory}")

    def stop(self):
        if self.observer is None:
            return
        self.observer.unschedule_all()
        self.observer.stop()
        self.observer.join()
        self.observer = None
        self.watched = []
        logger.info("Stopped watching for asset changes")

    def restart(self):
        """Drop every watch, reindex and rehash, then watch again."""
        if self.observer is not None:
            self.observer.unschedule_all()
        self.watched = []
        try:
            self.manager.reload()
        except DiscoveryError as e:
            self.manager.report(e)
            return
        self._schedule()

    def _schedule(self):
        if self.observer is None:
            return
        for relative in self.registry.directories():
            directory = os.path.join(self.registry.directory, *relative.split("/")) \
                if relative else self.registry.directory
            try:
                self.observer.schedule(_DirectoryHandler(self, directory),
                                       directory, recursive=False)
            except OSError as e:
                logger.warning(f"Cannot watch {directory}: {e}")
                continue
            self.watched.append(relative)

    def handle(self, path):
        """React to a change reported for the absolute ``path``."""
        name = os.path.relpath(path, self.registry.directory).replace(os.sep, "/")
        if name.startswith("..") or os.path.basename(name).startswith(TEMP_PREFIX):
            return
        if self.registry.addressing.is_compiled(name) or name == self.registry.manifest:
            return

        logger.debug(f"Detected a change in {name}")
        if os.path.isdir(path):
            self.restart()
        else:
            self.registry.refresh(name)
        self.registry.save_manifest()
        asset_changed.send(self.manager, path=name)
