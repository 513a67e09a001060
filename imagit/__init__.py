"""imagit - batch image conversion and resizing tool."""

__version__ = "0.1.0"
