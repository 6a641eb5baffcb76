"""
This package contains the export pipelines of Frame Movie.

A pipeline feeds a movie session from a concrete source (a directory of
images or the demo animation) and records the outcome in the export report
or the error log.
"""
