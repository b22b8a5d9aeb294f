"""repwatch — rogue endpoint fault watcher for ACI fabrics."""

__version__ = "0.1.0"
