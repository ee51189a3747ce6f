"""Device lifecycle orchestration."""

from .state_machine import LifecycleState, LifecycleStateMachine
from .lifecycle import LifecycleController

__all__ = [
    'LifecycleState',
    'LifecycleStateMachine',
    'LifecycleController',
]
