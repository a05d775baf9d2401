"""Election invariant checks.

Each check returns human-readable violations. An empty list means the
election is healthy. Passing the previous snapshot enables the
history checks (ballots never revert, phases never regress).
"""

from __future__ import annotations

from typing import Optional

from ballotbox.election import Election
from ballotbox.models.election import ElectionState


_PHASE_ORDER = {
    ElectionState.NOT_STARTED: 0,
    ElectionState.STARTED: 1,
    ElectionState.ENDED: 2,
}


def check_invariants(
    election: Election,
    previous: Optional[Election] = None,
) -> list[str]:
    errors: list[str] = []
    candidates = election.candidates()
    voters = election.voters()
    by_address = {v.address: v for v in voters}

    # --- I1: a single, non-empty admin ---
    if not isinstance(election.admin, str) or not election.admin.strip():
        errors.append("I1: admin identity is empty")

    # --- I3: tallies match counted ballots ---
    tally = sum(c.vote_count for c in candidates)
    counted = sum(1 for v in voters if v.voted)
    if tally != counted:
        errors.append(f"I3: tally {tally} != counted ballots {counted}")
    for candidate in candidates:
        if candidate.vote_count < 0:
            errors.append(f"I3: candidate {candidate.candidate_id} has negative tally")
        cast_for = sum(1 for v in voters if v.voted and v.vote == candidate.candidate_id)
        if cast_for != candidate.vote_count:
            errors.append(
                f"I3: candidate {candidate.candidate_id} tally {candidate.vote_count} "
                f"!= ballots recorded for it {cast_for}"
            )
    for voter in voters:
        if voter.voted and voter.vote is None:
            errors.append(f"I3: {voter.address} voted without a recorded vote")
        if not voter.voted and voter.vote is not None:
            errors.append(f"I3: {voter.address} has a vote but is not marked voted")

    # --- I4: acyclic, terminating delegation ---
    for voter in voters:
        if voter.delegate == voter.address:
            errors.append(f"I4: {voter.address} delegates to itself")
            continue
        seen = {voter.address}
        current = voter
        while current.delegate is not None:
            nxt = by_address.get(current.delegate)
            if nxt is None:
                errors.append(f"I4: {current.address} delegates to unknown {current.delegate}")
                break
            if nxt.address in seen:
                errors.append(f"I4: delegation cycle through {voter.address}")
                break
            seen.add(nxt.address)
            current = nxt

    # --- Counter consistency ---
    registered = sum(1 for v in voters if v.is_registered)
    if election.voter_count != registered:
        errors.append(
            f"voter_count {election.voter_count} != registered voters {registered}"
        )
    for index, candidate in enumerate(candidates):
        if candidate.candidate_id != index:
            errors.append(f"candidate at position {index} has id {candidate.candidate_id}")

    if previous is not None:
        errors.extend(_check_history(election, previous))

    return errors


def _check_history(election: Election, previous: Election) -> list[str]:
    errors: list[str] = []

    # --- I2: ballots are permanent ---
    current = {v.address: v for v in election.voters()}
    for before in previous.voters():
        after = current.get(before.address)
        if after is None:
            errors.append(f"I2: voter record {before.address} disappeared")
            continue
        if before.voted and (not after.voted or after.vote != before.vote):
            errors.append(f"I2: ballot of {before.address} changed after being counted")

    # --- I5: phases only move forward, one step at a time ---
    old_rank = _PHASE_ORDER[previous.get_election_state()]
    new_rank = _PHASE_ORDER[election.get_election_state()]
    if new_rank < old_rank:
        errors.append(
            f"I5: state regressed from {previous.get_election_state().value} "
            f"to {election.get_election_state().value}"
        )
    elif new_rank > old_rank + 1:
        errors.append("I5: state skipped a phase")

    # Candidates are never removed and tallies never decrease
    old_candidates = previous.candidates()
    new_candidates = election.candidates()
    if len(new_candidates) < len(old_candidates):
        errors.append("candidate removed")
    for before, after in zip(old_candidates, new_candidates):
        if after.vote_count < before.vote_count:
            errors.append(f"tally of candidate {before.candidate_id} decreased")

    return errors
