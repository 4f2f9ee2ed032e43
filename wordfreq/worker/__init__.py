"""
Job workers: decoding, word counting, the worker pool and result collection.
"""
