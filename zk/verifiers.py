"""
Proof verifier backends

A verifier is an opaque oracle: ``verify(proof, public_signals) -> bool``.
Backend failures never raise out of ``verify``; they are logged and reported
as an invalid proof.
"""

import json
import logging
import os
import stat
import subprocess
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from .circuits import (
    CREATION_SIGNALS,
    VOTING_SIGNALS,
    CreationWitness,
    VotingWitness,
    check_creation_relation,
    check_voting_relation,
)
from .errors import VerifierError

logger = logging.getLogger(__name__)


class ProofVerifier(ABC):
    """Verifier for one circuit"""

    circuit_name: str = ""
    signal_names: tuple = ()

    @abstractmethod
    def verify(self, proof: Any, public_signals: List[int]) -> bool:
        ...

    def _has_expected_arity(self, public_signals: List[int]) -> bool:
        if len(public_signals) != len(self.signal_names):
            logger.warning(
                f"{self.circuit_name}: expected {len(self.signal_names)} public signals, "
                f"got {len(public_signals)}")
            return False
        return True


# ============================================================================
# REFERENCE VERIFIERS
# ============================================================================

class ReferenceCreationVerifier(ProofVerifier):
    """Checks a ProposalCreation witness directly instead of a SNARK"""

    circuit_name = "ProposalCreation"
    signal_names = CREATION_SIGNALS

    def verify(self, proof: Any, public_signals: List[int]) -> bool:
        if not isinstance(proof, CreationWitness) or not self._has_expected_arity(public_signals):
            return False
        return check_creation_relation(proof, public_signals)


class ReferenceVotingVerifier(ProofVerifier):
    """Checks a Voting witness directly instead of a SNARK"""

    circuit_name = "Voting"
    signal_names = VOTING_SIGNALS

    def verify(self, proof: Any, public_signals: List[int]) -> bool:
        if not isinstance(proof, VotingWitness) or not self._has_expected_arity(public_signals):
            return False
        return check_voting_relation(proof, public_signals)


# ============================================================================
# GROTH16 VERIFIER (snarkjs)
# ============================================================================

class Groth16Verifier(ProofVerifier):
    """Verifies Groth16 proofs by shelling out to `snarkjs groth16 verify`"""

    def __init__(self, circuit_name: str, signal_names: tuple, vkey_path: Path,
                 snarkjs_bin: str = "snarkjs", timeout: int = 60):
        self.circuit_name = circuit_name
        self.signal_names = signal_names
        self.vkey_path = Path(vkey_path)
        self.snarkjs_bin = snarkjs_bin
        self.timeout = timeout
        self._vkey_cache: Optional[Dict[str, Any]] = None

    def _load_verification_key(self) -> Dict[str, Any]:
        if self._vkey_cache is None:
            if not self.vkey_path.exists():
                raise VerifierError(f"Verification key not found: {self.vkey_path}")
            with open(self.vkey_path, 'r') as f:
                self._vkey_cache = json.load(f)
        return self._vkey_cache

    def verify(self, proof: Any, public_signals: List[int]) -> bool:
        if not isinstance(proof, dict) or not self._has_expected_arity(public_signals):
            return False

        start_time = time.time()
        try:
            vkey = self._load_verification_key()

            with tempfile.TemporaryDirectory() as temp_dir:
                temp_path = Path(temp_dir)
                vkey_file = self._write_private(temp_path / "vkey.json", vkey)
                public_file = self._write_private(
                    temp_path / "public.json", [str(s) for s in public_signals])
                proof_file = self._write_private(temp_path / "proof.json", proof)

                cmd = [
                    self.snarkjs_bin, 'groth16', 'verify',
                    str(vkey_file),
                    str(public_file),
                    str(proof_file)
                ]
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)

            is_valid = result.returncode == 0 and "OK!" in result.stdout
            logger.info(
                f"Verified {self.circuit_name} proof in {time.time() - start_time:.3f}s: "
                f"{'valid' if is_valid else 'invalid'}")
            return is_valid

        except (VerifierError, OSError, ValueError, TypeError, subprocess.SubprocessError) as e:
            logger.error(f"{self.circuit_name} verification failed: {e}")
            return False

    @staticmethod
    def _write_private(path: Path, data: Any) -> Path:
        """Write JSON readable only by the current user"""
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f)
        return path


def build_verifiers(verifier_config):
    """Instantiate (creation, voting) verifiers from a VerifierConfig"""
    if verifier_config.backend == "reference":
        return ReferenceCreationVerifier(), ReferenceVotingVerifier()
    if verifier_config.backend == "groth16":
        creation = Groth16Verifier(
            "ProposalCreation", CREATION_SIGNALS, verifier_config.creation_vkey,
            snarkjs_bin=verifier_config.snarkjs_bin, timeout=verifier_config.timeout)
        voting = Groth16Verifier(
            "Voting", VOTING_SIGNALS, verifier_config.voting_vkey,
            snarkjs_bin=verifier_config.snarkjs_bin, timeout=verifier_config.timeout)
        return creation, voting
    raise VerifierError(f"Unknown verifier backend: {verifier_config.backend}")
