"""
signals.py — Change, delete and error notifications.

Receivers should connect with ``sender=manager`` so that several asset
managers living in the same process do not see each other's events::

    @asset_changed.connect_via(manager)
    def on_change(sender, path):
        ...
"""
from blinker import Namespace

_signals = Namespace()

# Sent with ``path`` after the watcher has updated the registry.
asset_changed = _signals.signal("asset-changed")

# Sent with ``path`` for every stale generated file that was retired.
asset_deleted = _signals.signal("asset-deleted")

# Sent with ``error`` whenever a public query swallows an AssetError.
asset_error = _signals.signal("asset-error")
