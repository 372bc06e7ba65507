# a11y_scout/__init__.py
"""
a11y-scout package initializer.
Defines the package version and exposes the CLI.
"""
__version__ = "0.1.0"
