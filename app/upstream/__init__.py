"""Upstream (Franz) API client used for federation and account import."""

from app.upstream.client import USER_AGENT, UpstreamClient

__all__ = ["USER_AGENT", "UpstreamClient"]
