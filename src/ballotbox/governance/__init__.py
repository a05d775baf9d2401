"""Election governance — admin authority and phase progression."""

from ballotbox.governance.access_control import AccessControl
from ballotbox.governance.state_machine import ElectionStateMachine

__all__ = ["AccessControl", "ElectionStateMachine"]
