"""Entry points for the fluent scenario DSL.

Usage::

    from assured import given

    given().with_step(step).save_step('create').and_().with_step(other)
"""

from __future__ import annotations

from typing import Any, TypeVar

from .context import CLIENT_PROVIDER_KEY, ScenarioContext
from .scenario import Scenario

S = TypeVar('S', bound=Scenario)


def start_scenario(scenario_cls: type[S], source: Any = None) -> S:
    """Build a ``scenario_cls`` from a context, a provider, or nothing.

    Args:
        scenario_cls: Scenario class to instantiate.
        source: ``None`` for a fresh context, a :class:`ScenarioContext`
            to share, or any other object to stash as the client provider.
    """
    if source is None:
        return scenario_cls()
    if isinstance(source, ScenarioContext):
        return scenario_cls(source)
    scenario = scenario_cls()
    scenario.context.set_property(CLIENT_PROVIDER_KEY, source)
    return scenario


def given(source: Any = None) -> Scenario:
    """Start a new scenario.

    ``given()`` creates a fresh context, ``given(context)`` reuses the
    supplied one and ``given(provider)`` stores ``provider`` in a fresh
    context under :data:`~assured.context.CLIENT_PROVIDER_KEY` for steps
    that need a client.
    """
    return start_scenario(Scenario, source)
