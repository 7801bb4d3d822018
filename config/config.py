import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class DigestConfig:
    algorithm: str = "keccak256"
    chunk_bits: int = 128


@dataclass
class IssuerConfig:
    issuer_name: str = "did:example:issuer"
    issuer_address: str = "0x0000000000000000000000000000000000000001"
    key_dir: Path = field(default_factory=lambda: Path("keys"))

    def __post_init__(self):
        self.key_dir = Path(self.key_dir)


@dataclass
class ProverConfig:
    circuit_name: str = "AttributeSignatureVerifier"
    build_dir: Path = field(default_factory=lambda: Path("circuits/build"))
    snarkjs_cmd: str = "snarkjs"
    proof_timeout: int = 60

    def __post_init__(self):
        self.build_dir = Path(self.build_dir)

    @property
    def wasm_file(self) -> Path:
        return self.build_dir / f"{self.circuit_name}_js" / f"{self.circuit_name}.wasm"

    @property
    def zkey_file(self) -> Path:
        return self.build_dir / f"{self.circuit_name}_final.zkey"


@dataclass
class RegistryConfig:
    contract_name: str = "AttributeRegistrySig"
    subject_address: str = "0x0000000000000000000000000000000000000002"
    deployed_addresses_file: Path = field(
        default_factory=lambda: Path("deployed_addresses.json"))

    def __post_init__(self):
        self.deployed_addresses_file = Path(self.deployed_addresses_file)


@dataclass
class SystemConfig:
    digest_config: DigestConfig = field(default_factory=DigestConfig)
    issuer_config: IssuerConfig = field(default_factory=IssuerConfig)
    prover_config: ProverConfig = field(default_factory=ProverConfig)
    registry_config: RegistryConfig = field(default_factory=RegistryConfig)

    artifacts_dir: Path = field(default_factory=lambda: Path("artifacts"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.artifacts_dir = Path(self.artifacts_dir)
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)


def _from_dict(config_data: Dict[str, Any]) -> SystemConfig:
    digest_data = config_data.get('digest', {}) or {}
    digest_config = DigestConfig(
        algorithm=digest_data.get('algorithm', 'keccak256'),
        chunk_bits=int(digest_data.get('chunk_bits', 128)),
    )

    issuer_data = config_data.get('issuer', {}) or {}
    issuer_config = IssuerConfig(
        issuer_name=issuer_data.get('issuer_name', IssuerConfig.issuer_name),
        issuer_address=issuer_data.get('issuer_address', IssuerConfig.issuer_address),
        key_dir=Path(issuer_data.get('key_dir', 'keys')),
    )

    prover_data = config_data.get('prover', {}) or {}
    prover_config = ProverConfig(
        circuit_name=prover_data.get('circuit_name', ProverConfig.circuit_name),
        build_dir=Path(prover_data.get('build_dir', 'circuits/build')),
        snarkjs_cmd=prover_data.get('snarkjs_cmd', 'snarkjs'),
        proof_timeout=int(prover_data.get('proof_timeout', 60)),
    )

    registry_data = config_data.get('registry', {}) or {}
    registry_config = RegistryConfig(
        contract_name=registry_data.get('contract_name', RegistryConfig.contract_name),
        subject_address=registry_data.get('subject_address', RegistryConfig.subject_address),
        deployed_addresses_file=Path(registry_data.get(
            'deployed_addresses_file', 'deployed_addresses.json')),
    )

    return SystemConfig(
        digest_config=digest_config,
        issuer_config=issuer_config,
        prover_config=prover_config,
        registry_config=registry_config,
        artifacts_dir=Path(config_data.get('artifacts_dir', 'artifacts')),
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        enable_benchmarking=config_data.get('enable_benchmarking', True),
        enable_debug_mode=config_data.get('enable_debug_mode', False),
    )


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from file or return default"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ValueError("top level must be a mapping")
            return _from_dict(config_data)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning(f"Could not load config file {config_path}: {e}")
            logger.warning("Using default configuration")

    return SystemConfig()


def config_to_dict(config: SystemConfig) -> Dict[str, Any]:
    return {
        'digest': {
            'algorithm': config.digest_config.algorithm,
            'chunk_bits': config.digest_config.chunk_bits,
        },
        'issuer': {
            'issuer_name': config.issuer_config.issuer_name,
            'issuer_address': config.issuer_config.issuer_address,
            'key_dir': str(config.issuer_config.key_dir),
        },
        'prover': {
            'circuit_name': config.prover_config.circuit_name,
            'build_dir': str(config.prover_config.build_dir),
            'snarkjs_cmd': config.prover_config.snarkjs_cmd,
            'proof_timeout': config.prover_config.proof_timeout,
        },
        'registry': {
            'contract_name': config.registry_config.contract_name,
            'subject_address': config.registry_config.subject_address,
            'deployed_addresses_file': str(config.registry_config.deployed_addresses_file),
        },
        'artifacts_dir': str(config.artifacts_dir),
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'enable_benchmarking': config.enable_benchmarking,
        'enable_debug_mode': config.enable_debug_mode,
    }


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to YAML file"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.safe_dump(config_to_dict(config), f, default_flow_style=False)
