import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

from chain import Chain, ChainError, encode_call
from config.config import ConfigError, SystemConfig, load_config
from multisig import (
    PRECISION,
    Participant,
    ProposalContent,
    ProposalStatus,
    ZKMultisig,
    ZKMultisigError,
    percent,
)
from utils.utils import PerformanceMonitor, create_performance_report, save_results, setup_logging
from zk import ZKError, build_verifiers

logger = logging.getLogger(__name__)


class GovernanceOrchestrator:
    """Runs governance rounds against a freshly deployed multisig"""

    def __init__(self, config: SystemConfig, num_participants: int):
        if config.verifier_config.backend != "reference":
            raise ValueError("The demo builds reference witnesses and needs the reference verifier backend")
        if num_participants < 2:
            raise ValueError("A multisig needs at least two participants")

        self.config = config
        self.performance_monitor = PerformanceMonitor(enabled=config.enable_benchmarking)
        self.chain = Chain(chain_id=config.multisig_config.chain_id)

        creation_verifier, voting_verifier = build_verifiers(config.verifier_config)
        self.chain.deploy(creation_verifier)
        self.chain.deploy(voting_verifier)

        # Secrets 1,2 / 3,4 / ... as (permanent, rotation) pairs
        proof_size = config.multisig_config.proof_size
        self.participants = [
            Participant(2 * i + 1, 2 * i + 2, proof_size=proof_size) for i in range(num_participants)
        ]

        self.multisig = ZKMultisig(self.chain)
        with self.performance_monitor.start_operation("initialize"):
            self.multisig.initialize(
                [p.permanent_key for p in self.participants],
                [p.rotation_key for p in self.participants],
                config.multisig_config.quorum_percentage,
                creation_verifier.address,
                voting_verifier.address,
            )

        self.rounds: List[Dict[str, Any]] = []
        logger.info(f"Initialized governance orchestrator with {num_participants} participants")

    def run_round(self, content: ProposalContent, approvals: int) -> Dict[str, Any]:
        """Create a proposal, let everyone vote, reveal and execute if accepted"""
        start_time = time.time()
        creator = self.participants[0]

        with self.performance_monitor.start_operation("create"):
            proposal_id = creator.create_proposal(self.multisig, content)

        for index, participant in enumerate(self.participants):
            with self.performance_monitor.start_operation("vote"):
                participant.vote(self.multisig, proposal_id, approve=index < approvals)

        with self.performance_monitor.start_operation("reveal_and_execute"):
            accepted = self.multisig.reveal_and_execute(approvals, content.value)

        info = self.multisig.get_proposal_info(proposal_id)
        round_result = {
            'proposal_id': proposal_id,
            'approvals': approvals,
            'participants': len(self.participants),
            'required_quorum': info.required_quorum,
            'accepted': accepted,
            'status': ProposalStatus(info.status).name,
            'duration': time.time() - start_time,
        }
        self.rounds.append(round_result)

        logger.info(
            f"Round finished: proposal {proposal_id:#x} {round_result['status']} "
            f"in {round_result['duration']:.3f}s")
        return round_result

    def propose_quorum_update(self, new_quorum_percent: int, approvals: int) -> Dict[str, Any]:
        payload = encode_call('update_quorum_percentage', percent(new_quorum_percent))
        content = ProposalContent(target=self.multisig.address, value=0, payload=payload)
        return self.run_round(content, approvals)

    def summary(self) -> Dict[str, Any]:
        return {
            'multisig': self.multisig.address,
            'chain_id': self.chain.chain_id,
            'participants': self.multisig.get_participants_count(),
            'quorum_percent': self.multisig.get_quorum_percentage() // PRECISION,
            'required_quorum': self.multisig.get_required_quorum(),
            'rounds': self.rounds,
            'performance_metrics': self.performance_monitor.get_summary(),
        }


def run_demo(config: SystemConfig, num_participants: int, approvals: int,
             new_quorum_percent: int, output: Path) -> bool:
    print("=" * 60)
    print("ZK MULTISIG GOVERNANCE DEMO")
    print("=" * 60)

    try:
        orchestrator = GovernanceOrchestrator(config, num_participants)
        print(f"\nDeployed multisig at {orchestrator.multisig.address}")
        print(f"  Participants: {num_participants}")
        print(f"  Quorum: {config.multisig_config.quorum_percentage // PRECISION}% "
              f"(threshold {orchestrator.multisig.get_required_quorum()})")

        print(f"\nProposing quorum update to {new_quorum_percent}% with {approvals} approvals...")
        result = orchestrator.propose_quorum_update(new_quorum_percent, approvals)

        print(f"\n  Proposal: {result['proposal_id']:#x}")
        print(f"  Status: {result['status']}")
        print(f"  Quorum now: {orchestrator.multisig.get_quorum_percentage() // PRECISION}%")

        config.ensure_directories()
        save_results(orchestrator.summary(), output)

        print(f"\nFull results saved to: {output}")
        if config.enable_benchmarking:
            report_path = config.results_dir / "performance_report.txt"
            with open(report_path, "w") as f:
                f.write(create_performance_report(orchestrator.performance_monitor))
            print(f"Performance report: {report_path}")
        return True

    except (ZKMultisigError, ZKError, ChainError, ValueError) as e:
        logger.error(f"Demo failed: {e}")
        print(f"\nDemo failed: {e}")
        return False


def main():
    parser = argparse.ArgumentParser(
        description='Anonymous threshold multisig governance')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument('--participants', type=int, default=5,
                        help='Number of participants')
    parser.add_argument('--approvals', type=int, default=4,
                        help='Number of participants voting in favour')
    parser.add_argument('--new-quorum', type=int, default=50,
                        help='Quorum percent proposed in the demo round')
    parser.add_argument('--log-level', type=str, default='INFO')
    parser.add_argument('--output', type=str, default=None,
                        help='Results file (defaults to <results_dir>/governance_demo.json)')

    args = parser.parse_args()

    try:
        config = load_config(Path(args.config))
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    log_level = "DEBUG" if config.enable_debug_mode else args.log_level
    setup_logging(log_level, config.log_dir / "zk_multisig.log")

    if not 0 <= args.approvals <= args.participants:
        parser.error("--approvals must be between 0 and --participants")

    output = Path(args.output) if args.output else config.results_dir / "governance_demo.json"
    success = run_demo(config, args.participants, args.approvals, args.new_quorum, output)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
