"""Activity pipeline: collectors → aggregation → summary.

Entry point: :func:`scribe.activity.summary.generate_summary`.
"""
