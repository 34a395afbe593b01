from __future__ import annotations

from fastapi import Request

from .accounts import AccountService
from .repositories import Store
from .settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts
