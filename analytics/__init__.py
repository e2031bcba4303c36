"""
analytics — GA4 reporting.

Provides:
  • GA4Client: Data API ``runReport`` and Admin API property discovery
  • Row parsing into typed aggregates (weighted rates, daily trend)
  • ReportFetcher: the fixed per-property request plan
"""
