"""relay - promote curated commits to release branches and mirror remotes."""

__version__ = "0.1.0"
