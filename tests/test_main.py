import json
import sys

import pytest

from config import MultisigConfig, SystemConfig, VerifierConfig
from main import GovernanceOrchestrator, main, run_demo
from multisig import percent
from utils.utils import save_results


@pytest.fixture
def system_config(tmp_path):
    return SystemConfig(log_dir=tmp_path / "logs", results_dir=tmp_path / "results")


class TestDemo:

    def test_quorum_update_round(self, system_config, tmp_path):
        output = tmp_path / "out.json"
        assert run_demo(system_config, 5, 4, 50, output) is True

        data = json.loads(output.read_text())['data']
        first_round = data['rounds'][0]
        assert first_round['status'] == "EXECUTED"
        assert first_round['accepted'] is True
        assert first_round['required_quorum'] == 4
        assert data['quorum_percent'] == 50
        assert data['required_quorum'] == 2
        assert data['performance_metrics']['operations']['vote']['count'] == 5
        assert (system_config.results_dir / "performance_report.txt").exists()

    def test_rejected_round_keeps_quorum(self, system_config, tmp_path):
        output = tmp_path / "out.json"
        assert run_demo(system_config, 5, 3, 50, output) is True

        data = json.loads(output.read_text())['data']
        assert data['rounds'][0]['status'] == "REJECTED"
        assert data['quorum_percent'] == 80

    def test_large_integers_are_hex_encoded(self, system_config, tmp_path):
        orchestrator = GovernanceOrchestrator(system_config, 3)
        result = orchestrator.propose_quorum_update(60, 3)

        path = tmp_path / "results.json"
        save_results(orchestrator.summary(), path)

        saved = json.loads(path.read_text())
        assert int(saved['data']['rounds'][0]['proposal_id'], 16) == result['proposal_id']
        assert saved['data']['multisig'] == orchestrator.multisig.address
        assert len(saved['metadata']['results_hash']) == 64

    def test_benchmarking_switch(self, tmp_path):
        config = SystemConfig(log_dir=tmp_path / "logs", results_dir=tmp_path / "results",
                              enable_benchmarking=False)
        assert run_demo(config, 3, 3, 50, tmp_path / "out.json") is True

        data = json.loads((tmp_path / "out.json").read_text())['data']
        assert data['performance_metrics']['total_operations'] == 0
        assert not (config.results_dir / "performance_report.txt").exists()

    def test_proof_size_reaches_participants(self, tmp_path):
        config = SystemConfig(multisig_config=MultisigConfig(quorum_percentage=percent(50), proof_size=20),
                              log_dir=tmp_path / "logs", results_dir=tmp_path / "results")
        orchestrator = GovernanceOrchestrator(config, 4)

        creator = orchestrator.participants[0]
        assert creator.proof_size == 20
        assert len(creator.creation_proof(orchestrator.multisig).membership.siblings) == 20

    @pytest.mark.parametrize("participants, verifier_config", [
        (1, VerifierConfig()),
        (5, VerifierConfig(backend="groth16")),
    ])
    def test_setup_errors_fail_the_demo(self, tmp_path, participants, verifier_config):
        config = SystemConfig(verifier_config=verifier_config,
                              log_dir=tmp_path / "logs", results_dir=tmp_path / "results")
        assert run_demo(config, participants, 1, 50, tmp_path / "out.json") is False
        assert not (tmp_path / "out.json").exists()


class TestCommandLine:

    def test_malformed_config_exits(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "config.yaml"
        path.write_text("multisig: [unclosed")
        monkeypatch.setattr(sys, 'argv', ['zk-multisig-demo', '--config', str(path)])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().out
