"""
Zhide Recruiting Marketplace
Connects employers (B-side) and job seekers (C-side) with AI-assisted
resume parsing and job matching.

Architecture:
- MongoDB: Key-value document store (users, candidates, jobs, sessions, match history)
- DeepSeek AI (OpenAI-compatible): Resume parsing and batch match scoring
- FastAPI: HTTP surface with JWT role tokens
"""

__version__ = "1.0.0"
