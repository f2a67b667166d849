"""Sage Launcher: configure a Sage search and supervise its execution.

The configuration forms live elsewhere; this package owns the serialized job
description and the supervisor that runs it in a worker thread or a child process.
"""
