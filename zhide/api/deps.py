"""
Route dependencies - services built by create_app() and kept on app.state.
"""

from fastapi import Request

from zhide.services.matching_service import MatchingService
from zhide.services.resume_service import ResumeService
from zhide.services.storage_service import StorageAdapter


def get_storage(request: Request) -> StorageAdapter:
    return request.app.state.storage


def get_resume_service(request: Request) -> ResumeService:
    return request.app.state.resume_service


def get_matching_service(request: Request) -> MatchingService:
    return request.app.state.matching_service
