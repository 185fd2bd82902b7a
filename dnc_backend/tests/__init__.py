'''
DNC Compliance Backend Test Suite

Test Modules:
-------------
- test_phone.py: Phone normalization, validation and display formatting
- test_risk_scoring.py: Point rules, flag order and status thresholds
- test_batch_check.py: Registry lookup gateway and batch scoring
  - Three store reads per batch regardless of size
  - Input order and pass-through fields preserved
- test_statistics.py: Batch statistics and CSV export
- test_change_list_parser.py: FTC file line parsing and area-code allow-list
- test_retry.py: Exponential backoff retry policy
- test_change_list_applier.py: Additions upserts and deletions tracking
- test_change_list_jobs.py: Job lifecycle, progress, cancellation, retry
  and the pending-job worker
- test_notifications.py: Resend email and Slack completion messages
- test_repositories.py: Postgres and in-memory stores, query builders and
  blob storage
- test_api.py: HTTP endpoints through FastAPI's TestClient

Running Tests:
--------------
    pip install -e ".[test]"
    pytest dnc_backend/tests/ -v

Test Dependencies:
------------------
- pytest
- pytest-asyncio

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
