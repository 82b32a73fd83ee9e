"""
Application policy: starting a meta graph from its specification.

Specification terms (on the root specification):
- init: the initial data value, or a zero-argument callable producing it.
  start_async() also accepts a callable returning an awaitable.
- review: function called with the root node once the graph is built
  (e.g. to render it)

Any asynchronous data acquisition completes before graph construction
begins; construction itself is synchronous.
"""

import inspect
import logging
from typing import Any, Callable, Optional

from metagraph import MetaNode, MetaSpec, SetupRegistry, build, rebase

logger = logging.getLogger(__name__)


def _initial_data(spec: MetaSpec) -> Any:
    init = spec.term('init')
    if callable(init):
        return init()
    return init if init is not None else {}


def start(spec: MetaSpec, registry: Optional[SetupRegistry] = None) -> MetaNode:
    """Build the application graph from spec's init term and review it.

    Raises:
        TypeError: If init produces an awaitable (use start_async()).
    """
    data = _initial_data(spec)
    if inspect.isawaitable(data):
        if inspect.iscoroutine(data):
            data.close()
        raise TypeError("init is asynchronous, use start_async()")
    return _launch(spec, data, registry)


async def start_async(spec: MetaSpec, registry: Optional[SetupRegistry] = None) -> MetaNode:
    """Like start(), awaiting init first when it is asynchronous."""
    data = _initial_data(spec)
    if inspect.isawaitable(data):
        data = await data
    return _launch(spec, data, registry)


def _launch(spec: MetaSpec, data: Any, registry: Optional[SetupRegistry]) -> MetaNode:
    root = build(spec, data, registry=registry)
    logger.info(f"Started application graph: {spec!r}")
    review = spec.term('review')
    if callable(review):
        review(root)
    return root


def meta_proc(proc: Callable[..., Any]) -> Callable[..., Any]:
    """Adapt a function of the data value into a process on a meta node.

    The function may mutate the value in place; the node is rebased afterwards
    so the graph reflects the change.

    Usage:
        add_item = meta_proc(lambda order: order["lines"].append({"qty": 1}))
        add_item(order_node)
    """
    def process(node: MetaNode, *args: Any) -> Any:
        result = proc(node.value, *args)
        rebase(node)
        return result
    return process
