"""Jira visit calendar: ingestion, layout and batch fetching for a calendar dashboard"""

__version__ = "2.0.0"
