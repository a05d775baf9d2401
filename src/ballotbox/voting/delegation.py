"""Delegation resolver — hands a voter's ballot to another verified voter.

A delegation chain V → V.delegate → ... ends at the first voter with no
delegate (the terminal). The terminal casts the ballot for everyone whose
chain resolves to it.

Invariants enforced:
- No voter delegates to itself.
- Chains are acyclic. delegate() walks the target's chain and rejects
  any link that would lead back to the caller.
- Resolution is bounded by the number of voter records. A walk that
  has not reached a terminal within that many hops is treated as a
  cycle and rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ballotbox.errors import (
    AlreadyVotedError,
    DelegateNotVerifiedError,
    DelegationCycleError,
    NotFoundError,
    NotVerifiedError,
    SelfDelegationError,
    canonical_identity,
)
from ballotbox.governance.state_machine import ElectionStateMachine
from ballotbox.models.election import ElectionState
from ballotbox.models.voter import Voter
from ballotbox.registry.voters import VoterRegistry


@dataclass
class Delegation:
    """Outcome of a recorded delegation."""
    delegator: Voter
    terminal: Voter
    carried: list[Voter] = field(default_factory=list)


class DelegationResolver:
    """Records delegations and resolves chains to their terminal voter."""

    def __init__(
        self,
        voters: VoterRegistry,
        state_machine: ElectionStateMachine,
    ) -> None:
        self._voters = voters
        self._state_machine = state_machine

    def delegate(self, caller: str, to: str) -> Delegation:
        """Delegate the caller's ballot to `to`.

        The returned Delegation lists the ballots the caller carried
        (its own plus its pending delegators, captured before linking)
        and the terminal they now resolve to. Counting them when the
        terminal has already voted is the voting engine's job.
        """
        self._state_machine.require_not(
            ElectionState.ENDED, "Cannot delegate after the election ended",
        )
        sender = self._voters.get(caller)
        if sender is None or not sender.is_eligible():
            raise NotVerifiedError("Not verified to delegate")
        if sender.voted:
            raise AlreadyVotedError("Already voted")
        if sender.delegate is not None:
            raise AlreadyVotedError(f"Voting right already delegated to {sender.delegate}")

        target_address = canonical_identity(to, "Delegate")
        if target_address == sender.address:
            raise SelfDelegationError("Self-delegation is not allowed")
        target = self._voters.get(target_address)
        if target is None or not target.is_eligible():
            raise DelegateNotVerifiedError(f"Delegate not verified: {target_address}")

        terminal = self._walk(target, stop_at=sender.address)
        if not terminal.is_eligible():
            raise DelegateNotVerifiedError(
                f"Delegate not verified: chain ends at {terminal.address}"
            )

        carried = [sender] + self.pending_delegators(sender.address)
        sender.delegate = target.address
        return Delegation(delegator=sender, terminal=terminal, carried=carried)

    def resolve(self, address: str) -> Voter:
        """Return the terminal voter of address's delegation chain."""
        start = self._voters.get(address)
        if start is None:
            raise NotFoundError(f"Voter not found: {address}")
        return self._walk(start)

    def pending_delegators(self, address: str) -> list[Voter]:
        """Voters whose uncounted ballot currently resolves to address.

        Only registered, verified voters that have not voted are
        included, in registration order.
        """
        canonical = address.strip()
        pending: list[Voter] = []
        for voter in self._voters.all_voters():
            if voter.address == canonical or voter.delegate is None:
                continue
            if voter.voted or not voter.is_eligible():
                continue
            if self._walk(voter).address == canonical:
                pending.append(voter)
        return pending

    def chain(self, address: str) -> list[str]:
        """Return the addresses visited from address to its terminal."""
        voter = self._voters.get(address)
        if voter is None:
            raise NotFoundError(f"Voter not found: {address}")
        path = [voter.address]
        while voter.delegate is not None:
            if len(path) > self._voters.record_count:
                raise DelegationCycleError(f"Delegation chain from {address} does not terminate")
            voter = self._require_link(voter)
            path.append(voter.address)
        return path

    def _walk(self, start: Voter, stop_at: str | None = None) -> Voter:
        current = start
        for _ in range(self._voters.record_count + 1):
            if stop_at is not None and current.address == stop_at:
                raise DelegationCycleError("Found loop in delegation")
            if current.delegate is None:
                return current
            current = self._require_link(current)
        raise DelegationCycleError(
            f"Delegation chain from {start.address} does not terminate"
        )

    def _require_link(self, voter: Voter) -> Voter:
        nxt = self._voters.get(voter.delegate)
        if nxt is None:
            raise NotFoundError(f"Delegate not found: {voter.delegate}")
        return nxt
