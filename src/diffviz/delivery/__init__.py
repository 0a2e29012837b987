#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/__init__.py
"""Delivery of rendered diffs.

This module decides where a rendered diff goes and takes it there: a
GitHub gist with a preview link, a file in the local output directory,
or an inline ``data:`` URI for hosted deployments.

Key Features
------------
- Security levels mapped to lifetime, visibility and optional access gate
- Pure strategy selection from credentials, mode and deployment
- Remote-first delivery with ordered fallback
- Deferred deletion of shared gists and expiring local files

Examples
--------
Deliver a diff with the environment configuration:
    >>> from diffviz.config import load_config_from_env
    >>> from diffviz.delivery import DeliveryOrchestrator, DeliveryRequest
    >>> orchestrator = DeliveryOrchestrator(load_config_from_env())
    >>> result = orchestrator.deliver(DeliveryRequest(diff="-old\\n+new", old_path="a.py", new_path="a.py"))
    >>> print(result.summary)

"""

from diffviz.delivery.local import LocalArtifact, LocalArtifactWriter, PlatformOpener, PlaywrightRasterizer, to_data_uri
from diffviz.delivery.orchestrator import DeliveryOrchestrator, DeliveryRequest, DeliveryResult, DeliveryState
from diffviz.delivery.planner import DeliveryContext, DeliveryPlan, Strategy, select_plan
from diffviz.delivery.remote import GistClient, ShareMetadata, SharedArtifact
from diffviz.delivery.scheduler import DeferredTaskScheduler, ScheduledTask
from diffviz.delivery.security import PolicyOverrides, SecurityPolicy, resolve_policy

__all__ = [
    "DeferredTaskScheduler",
    "DeliveryContext",
    "DeliveryOrchestrator",
    "DeliveryPlan",
    "DeliveryRequest",
    "DeliveryResult",
    "DeliveryState",
    "GistClient",
    "LocalArtifact",
    "LocalArtifactWriter",
    "PlatformOpener",
    "PlaywrightRasterizer",
    "PolicyOverrides",
    "ScheduledTask",
    "SecurityPolicy",
    "ShareMetadata",
    "SharedArtifact",
    "Strategy",
    "resolve_policy",
    "select_plan",
]
