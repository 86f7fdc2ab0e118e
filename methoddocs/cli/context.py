"""Shared click context helpers

ctx.obj holds "settings" and lazily built "store" and "client" entries.
Tests inject ready-made instances under the same keys.
"""

import click

from methoddocs.config import Settings
from methoddocs.store import MethodStore, build_store

from .client import MethodsClient


def get_settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def get_store(ctx: click.Context) -> MethodStore:
    """Gateway for offline commands"""
    if ctx.obj.get("store") is None:
        ctx.obj["store"] = build_store(get_settings(ctx))
    return ctx.obj["store"]


def get_client(ctx: click.Context) -> MethodsClient:
    """API client for the configured base URL"""
    if ctx.obj.get("client") is None:
        client = MethodsClient(base_url=get_settings(ctx).api_url)
        ctx.call_on_close(client.close)
        ctx.obj["client"] = client
    return ctx.obj["client"]
