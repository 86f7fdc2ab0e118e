"""methoddocs - Documentation catalog for JavaScript built-in methods"""

__version__ = "0.1.0"
