"""
Word Frequency Worker

A distributed job pipeline that drains storage-upload notifications from a
durable queue, counts the most frequent words of each uploaded object, and
records and reports the results with at-least-once semantics.
"""

__version__ = "1.0.0"
