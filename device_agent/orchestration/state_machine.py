from enum import Enum, auto
import logging
import threading

class LifecycleState(Enum):
    UNCONNECTED = auto()
    SESSION_PENDING = auto()
    SESSION_ACTIVE = auto()
    OPERATIONAL = auto()

class LifecycleStateMachine:
    """Tracks where a device is between first boot and an operational session"""
    
    def __init__(self):
        self.current_state = LifecycleState.UNCONNECTED
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self.valid_transitions = {
            LifecycleState.UNCONNECTED: {LifecycleState.SESSION_PENDING},
            LifecycleState.SESSION_PENDING: {LifecycleState.SESSION_ACTIVE, LifecycleState.UNCONNECTED},
            LifecycleState.SESSION_ACTIVE: {LifecycleState.OPERATIONAL, LifecycleState.UNCONNECTED},
            LifecycleState.OPERATIONAL: {LifecycleState.UNCONNECTED},
        }
    
    def can_transition_to(self, new_state: LifecycleState) -> bool:
        return new_state in self.valid_transitions.get(self.current_state, set())
    
    def transition_to(self, new_state: LifecycleState) -> bool:
        with self._lock:
            if self.can_transition_to(new_state):
                self.logger.info(f"State transition: {self.current_state.name} -> {new_state.name}")
                self.current_state = new_state
                return True
            else:
                self.logger.error(f"Invalid state transition: {self.current_state.name} -> {new_state.name}")
                return False

    def reset(self) -> None:
        """Fall back to UNCONNECTED from wherever the machine is."""
        if self.current_state != LifecycleState.UNCONNECTED:
            self.transition_to(LifecycleState.UNCONNECTED)
