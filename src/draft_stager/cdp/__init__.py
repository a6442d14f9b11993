"""Chrome DevTools Protocol plumbing: tab discovery, RPC channel, page evaluation."""

from draft_stager.cdp.channel import RpcChannel
from draft_stager.cdp.evaluator import PageEvaluator
from draft_stager.cdp.targets import DebugTarget, TargetLocator

__all__ = ["DebugTarget", "PageEvaluator", "RpcChannel", "TargetLocator"]
