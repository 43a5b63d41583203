"""commitwindow - report the commits of every accessible repository inside a date window."""

__version__ = "0.1.0"
