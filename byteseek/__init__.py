"""
BYTESEEK — Binary Pattern Offset Finder
=======================================
A small utility that scans files in bounded chunks for a literal byte
sequence and reports the absolute offset of every occurrence.
"""

__version__ = "1.0.0"
__license__ = "MIT"
__description__ = "Chunked byte-pattern scanner for binary files"
