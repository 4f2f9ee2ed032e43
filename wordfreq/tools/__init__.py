"""
Command line tools around the worker: table provisioning and uploads.
"""
