"""
Schemas module - domain records and API request/response schemas.

Difference between the two groups:
- Domain records: what the storage layer persists (User, Session, Candidate, Job, MatchResult)
- Request/response schemas: API contract (what client sends/receives)
"""
