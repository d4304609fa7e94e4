"""
FastAPI dependencies exposing the objects built in the application lifespan.
"""

from fastapi import Request

from app.jobs.deletion_job import DeletionJobRunner
from app.jobs.import_registry import ImportJobRegistry
from app.services.account_store import AccountStore
from app.services.credentials import CredentialResolver


def get_account_store(request: Request) -> AccountStore:
    return request.app.state.account_store


def get_credential_resolver(request: Request) -> CredentialResolver:
    return request.app.state.credential_resolver


def get_import_registry(request: Request) -> ImportJobRegistry:
    return request.app.state.import_registry


def get_deletion_runner(request: Request) -> DeletionJobRunner:
    return request.app.state.deletion_runner
