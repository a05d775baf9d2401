"""Ballotbox CLI — command-line interface for the election core.

Usage:
    python -m ballotbox.cli status
    python -m ballotbox.cli --as 0xadmin add-candidate --header "Alice" --slogan "Forward"
    python -m ballotbox.cli --as 0xv1 register --name "Voter One" --phone 555-0101
    python -m ballotbox.cli --as 0xadmin verify --address 0xv1
    python -m ballotbox.cli --as 0xadmin start
    python -m ballotbox.cli --as 0xv1 vote --candidate 0
    python -m ballotbox.cli --as 0xadmin end
    python -m ballotbox.cli winner
    python -m ballotbox.cli check-invariants

The caller identity comes from --as, or from BALLOTBOX_IDENTITY when
--as is omitted. State is durable through the ledger in the data dir.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from ballotbox.config import load_config
from ballotbox.errors import ElectionError
from ballotbox.identity import (
    EnvironmentIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
)
from ballotbox.invariants import check_invariants
from ballotbox.persistence.event_log import EventLog
from ballotbox.service import ElectionService, ServiceResult


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"


def _make_service(args: argparse.Namespace) -> ElectionService:
    """Create an ElectionService backed by the ledger in the data dir."""
    config = load_config(args.config)
    if args.data_dir is not None:
        config = config.with_overrides(data_dir=args.data_dir)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    config.data_dir.mkdir(parents=True, exist_ok=True)
    identity: IdentityProvider = (
        StaticIdentityProvider(args.caller) if args.caller
        else EnvironmentIdentityProvider()
    )
    return ElectionService(
        config.details,
        config.admin,
        event_log=EventLog(storage_path=config.ledger_path),
        identity_provider=identity,
    )


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _report(result: ServiceResult, show_data: bool = True) -> int:
    if result.success:
        if show_data and result.data:
            data = {k: _to_jsonable(v) for k, v in result.data.items()}
            print(json.dumps(data, indent=2, default=str))
        return 0
    kind = result.error_kind.value if result.error_kind else "Error"
    print(f"Failed [{kind}]: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_status(service: ElectionService, args: argparse.Namespace) -> int:
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_details(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("getElectionDetails"))


def cmd_start(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("startElection"))


def cmd_end(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("endElection"))


def cmd_add_candidate(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("addCandidate", header=args.header, slogan=args.slogan))


def cmd_candidates(service: ElectionService, args: argparse.Namespace) -> int:
    election = service.election
    print(json.dumps([dataclasses.asdict(c) for c in election.candidates()], indent=2))
    return 0


def cmd_register(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("registerAsVoter", name=args.name, phone=args.phone))


def cmd_verify(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(
        service.execute("verifyVoter", address=args.address, status=not args.revoke)
    )


def cmd_remove_voter(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("removeVoter", address=args.address))


def cmd_voters(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("getVoterList"))


def cmd_voter(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("getVoterDetails", address=args.address))


def cmd_vote(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("castVote", candidate_id=args.candidate))


def cmd_delegate(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("delegate", to=args.to))


def cmd_winner(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("getWinner"))


def cmd_transfer_admin(service: ElectionService, args: argparse.Namespace) -> int:
    return _report(service.execute("transferAdmin", new_admin=args.new_admin))


def cmd_check_invariants(service: ElectionService, args: argparse.Namespace) -> int:
    """Run election invariant checks against the current state."""
    errors = check_invariants(service.election)
    if errors:
        for error in errors:
            print(f"FAIL: {error}", file=sys.stderr)
        return 1
    print("All election invariants hold.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ballotbox",
        description="Ballotbox — single-election core CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the ledger (default: from config)",
    )
    parser.add_argument(
        "--as", dest="caller",
        help="Caller identity (default: $BALLOTBOX_IDENTITY)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show election status")
    sub.add_parser("details", help="Show election details")
    sub.add_parser("start", help="Start the election (admin)")
    sub.add_parser("end", help="End the election (admin)")

    p_cand = sub.add_parser("add-candidate", help="Add a candidate (admin)")
    p_cand.add_argument("--header", required=True, help="Candidate header")
    p_cand.add_argument("--slogan", required=True, help="Candidate slogan")

    sub.add_parser("candidates", help="List candidates with tallies")

    p_reg = sub.add_parser("register", help="Register the caller as a voter")
    p_reg.add_argument("--name", required=True, help="Voter name")
    p_reg.add_argument("--phone", required=True, help="Voter phone")

    p_ver = sub.add_parser("verify", help="Verify a voter (admin)")
    p_ver.add_argument("--address", required=True, help="Voter address")
    p_ver.add_argument("--revoke", action="store_true", help="Un-verify instead")

    p_rm = sub.add_parser("remove-voter", help="Remove a voter (admin)")
    p_rm.add_argument("--address", required=True, help="Voter address")

    sub.add_parser("voters", help="List all voters")

    p_voter = sub.add_parser("voter", help="Show one voter")
    p_voter.add_argument("--address", required=True, help="Voter address")

    p_vote = sub.add_parser("vote", help="Cast the caller's ballot")
    p_vote.add_argument("--candidate", type=int, required=True, help="Candidate id")

    p_del = sub.add_parser("delegate", help="Delegate the caller's ballot")
    p_del.add_argument("--to", required=True, help="Delegate address")

    sub.add_parser("winner", help="Show the winner (after the election ended)")

    p_adm = sub.add_parser("transfer-admin", help="Hand admin rights to another identity")
    p_adm.add_argument("--new-admin", required=True, help="New admin identity")

    sub.add_parser("check-invariants", help="Run election invariant checks")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "details": cmd_details,
        "start": cmd_start,
        "end": cmd_end,
        "add-candidate": cmd_add_candidate,
        "candidates": cmd_candidates,
        "register": cmd_register,
        "verify": cmd_verify,
        "remove-voter": cmd_remove_voter,
        "voters": cmd_voters,
        "voter": cmd_voter,
        "vote": cmd_vote,
        "delegate": cmd_delegate,
        "winner": cmd_winner,
        "transfer-admin": cmd_transfer_admin,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        service = _make_service(args)
    except (ElectionError, ValueError, OSError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    return handler(service, args)


if __name__ == "__main__":
    raise SystemExit(main())
