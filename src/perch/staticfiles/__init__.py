"""Static file endpoints: options, content types, conditional requests and
the existence-gated route binder.

Public names are re-exported from the top-level ``perch`` package.
"""
