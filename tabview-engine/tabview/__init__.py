from tabview.__version__ import __version__  # noqa: F401
