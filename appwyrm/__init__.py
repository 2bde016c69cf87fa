"""
+-----------+
|  APPWYRM  |
+-----------+

Application bundle launcher core: directory scanning, usage tracking, fuzzy ranking.
"""

PROG_NAME = "appwyrm"
__version__ = "0.3.0"
