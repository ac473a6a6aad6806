"""orgdrift: dependency graphs and drift diffs for org metadata inventories."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("orgdrift")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
