import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config.config import SystemConfig, load_config
from credential_system import (CredentialHolder, CredentialIssuer,
                               IntegratedCredentialSystem, demo_certificate)
from issuer.certificate import CertificateDigest
from issuer.eddsa import IssuerIdentity
from utils import artifacts
from utils.utils import create_performance_report, save_results, setup_logging
from zk.errors import CredentialError, RevertError
from zk.transcoder import ProofTranscoder

logger = logging.getLogger(__name__)


def _load_or_create_issuer(config: SystemConfig, key_file: Optional[Path]) -> IssuerIdentity:
    key_path = key_file or config.issuer_config.key_dir / artifacts.PRIVATE_KEY_FILE
    if key_path.exists():
        identity = IssuerIdentity.from_private_key(artifacts.load_private_key(key_path))
        logger.info(f"Loaded issuer key from {key_path}")
    else:
        identity = IssuerIdentity.generate()
        artifacts.save_private_key(bytes.fromhex(identity.private_key_hex), key_path)
        artifacts.save_public_key(identity.public_key, key_path.parent / artifacts.PUBLIC_KEY_FILE)
        logger.info(f"Generated new issuer key at {key_path}")
    return identity


def cmd_keygen(args, config: SystemConfig) -> int:
    key_dir = Path(args.out) if args.out else config.issuer_config.key_dir
    key_path = key_dir / artifacts.PRIVATE_KEY_FILE
    if key_path.exists() and not args.force:
        logger.error(f"{key_path} already exists; pass --force to overwrite")
        return 1

    identity = IssuerIdentity.generate()
    artifacts.save_private_key(bytes.fromhex(identity.private_key_hex), key_path)
    artifacts.save_public_key(identity.public_key, key_dir / artifacts.PUBLIC_KEY_FILE)
    print(json.dumps(identity.public_key.to_json(), indent=2))
    return 0


def cmd_issue(args, config: SystemConfig) -> int:
    identity = _load_or_create_issuer(config, Path(args.key) if args.key else None)
    digest_config = config.digest_config
    issuer = CredentialIssuer(identity, CertificateDigest(digest_config.algorithm,
                                                          digest_config.chunk_bits))

    certificate = artifacts.load_certificate(Path(args.certificate))
    credential = issuer.issue(certificate, args.attribute)

    output_dir = Path(args.out) if args.out else config.artifacts_dir
    issuer.export(credential, output_dir)
    print(json.dumps(credential.params.to_json(), indent=2))
    return 0


def cmd_commit(args, config: SystemConfig) -> int:
    params = artifacts.load_params(Path(args.params))
    holder = CredentialHolder(params)
    opening = holder.commit()

    output_dir = Path(args.out) if args.out else config.artifacts_dir
    artifacts.write_json(holder.circuit_inputs().to_json(), output_dir / artifacts.INPUT_FILE)
    print(json.dumps({'commitmentHash': str(opening.commitment)}, indent=2))
    return 0


def cmd_transcode(args, config: SystemConfig) -> int:
    proof_data, public_data = artifacts.load_proof_files(Path(args.proof), Path(args.public))
    transcoded = ProofTranscoder().encode(proof_data, public_data)

    if args.calldata:
        print(transcoded.to_solidity_calldata())
    else:
        print(json.dumps(transcoded.to_json(), indent=2))
    return 0


def cmd_demo(args, config: SystemConfig) -> int:
    system = IntegratedCredentialSystem(config)
    system.register_issuer()

    certificate = demo_certificate(
        subject=config.registry_config.subject_address,
        issuer=config.issuer_config.issuer_name)
    results = system.run(certificate, args.attribute, output_dir=config.artifacts_dir)

    print("\n" + "=" * 80)
    print("ANONYMOUS ATTRIBUTE CREDENTIAL DEMO")
    print("=" * 80)
    for key, value in results['credential'].items():
        print(f"  {key}: {value}")

    print("\nIntegrity Checks:")
    for check, passed in results['integrity_checks'].items():
        status = "PASSED" if passed else "FAILED"
        print(f"  {check}: {status}")

    if config.enable_benchmarking:
        results['performance'] = system.monitor.get_summary()
        report_path = config.results_dir / "credential_demo_report.json"
        save_results(results, report_path)

        perf_report = create_performance_report(system.monitor)
        with open(config.results_dir / "performance_report.txt", "w") as f:
            f.write(perf_report)
        print(f"\nFull results saved to: {report_path}")

    return 0 if all(results['integrity_checks'].values()) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Anonymous Attribute Credential System')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument('--log-level', type=str, default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])

    subparsers = parser.add_subparsers(dest='command', required=True)

    keygen = subparsers.add_parser('keygen', help='Generate an issuer keypair')
    keygen.add_argument('--out', type=str, help='Key directory')
    keygen.add_argument('--force', action='store_true')
    keygen.set_defaults(handler=cmd_keygen)

    issue = subparsers.add_parser('issue', help='Hash and sign a certificate')
    issue.add_argument('--certificate', required=True, help='certificate_data.json')
    issue.add_argument('--attribute', required=True, help='Attribute to expose to the circuit')
    issue.add_argument('--key', type=str, help='issuer_private_key.hex')
    issue.add_argument('--out', type=str, help='Output directory')
    issue.set_defaults(handler=cmd_issue)

    commit = subparsers.add_parser('commit', help='Commit to an attribute and write input.json')
    commit.add_argument('--params', required=True, help='params_for_user.json')
    commit.add_argument('--out', type=str, help='Output directory')
    commit.set_defaults(handler=cmd_commit)

    transcode = subparsers.add_parser('transcode', help='Convert snarkjs output for the verifier')
    transcode.add_argument('--proof', required=True, help='proof.json')
    transcode.add_argument('--public', required=True, help='public.json')
    transcode.add_argument('--calldata', action='store_true',
                           help='Print Solidity calldata instead of JSON')
    transcode.set_defaults(handler=cmd_transcode)

    demo = subparsers.add_parser('demo', help='Run issuer, holder and registry end to end')
    demo.add_argument('--attribute', default='age')
    demo.set_defaults(handler=cmd_demo)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(Path(args.config))
    log_level = args.log_level or ('DEBUG' if config.enable_debug_mode else 'INFO')
    setup_logging(log_level, config.log_dir / "credential_system.log")

    try:
        return args.handler(args, config)
    except RevertError as e:
        logger.error(f"Registry call reverted: {e.reason or e}")
        return 1
    except CredentialError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
