"""Report the largest committed files of a repository or a whole account"""

__version__ = "0.1.0"
