import json

import pytest
import yaml

import main
from credential_system import demo_certificate
from utils import artifacts


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        'artifacts_dir': str(tmp_path / "artifacts"),
        'log_dir': str(tmp_path / "logs"),
        'results_dir': str(tmp_path / "results"),
        'issuer': {'key_dir': str(tmp_path / "keys")},
        'prover': {'build_dir': str(tmp_path / "missing-build")},
    }))
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    import logging
    root = logging.getLogger()
    saved = root.handlers[:]
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in saved:
        root.addHandler(handler)


def run(config_file, *argv):
    return main.main(['--config', str(config_file), '--log-level', 'WARNING', *argv])


def test_keygen_refuses_to_overwrite(tmp_path, config_file, capsys):
    assert run(config_file, 'keygen') == 0
    public_key = json.loads(capsys.readouterr().out)
    assert set(public_key) == {"Ax", "Ay"}
    assert (tmp_path / "keys" / artifacts.PRIVATE_KEY_FILE).exists()

    assert run(config_file, 'keygen') == 1
    assert run(config_file, 'keygen', '--force') == 0


def test_issue_then_commit(tmp_path, config_file, capsys):
    cert_path = tmp_path / "certificate_data.json"
    artifacts.save_certificate(demo_certificate(), cert_path)

    assert run(config_file, 'issue', '--certificate', str(cert_path), '--attribute', 'age') == 0
    params = json.loads(capsys.readouterr().out)
    assert params['attributeValueFromCert'] == "42"

    params_path = tmp_path / "artifacts" / artifacts.PARAMS_FILE
    assert run(config_file, 'commit', '--params', str(params_path)) == 0
    commitment = json.loads(capsys.readouterr().out)['commitmentHash']

    inputs = json.loads((tmp_path / "artifacts" / artifacts.INPUT_FILE).read_text())
    assert inputs['commitmentHash'] == commitment
    assert inputs['messageHash'] == params['messageHash']


def test_issue_missing_attribute_fails(tmp_path, config_file):
    cert_path = tmp_path / "certificate_data.json"
    artifacts.save_certificate(demo_certificate(), cert_path)
    assert run(config_file, 'issue', '--certificate', str(cert_path),
               '--attribute', 'height') == 1


def test_transcode(tmp_path, config_file, capsys, raw_proof, public_signals):
    proof_path = tmp_path / "proof.json"
    public_path = tmp_path / "public.json"
    artifacts.write_json(raw_proof, proof_path)
    artifacts.write_json(public_signals, public_path)

    assert run(config_file, 'transcode', '--proof', str(proof_path),
               '--public', str(public_path)) == 0
    out = json.loads(capsys.readouterr().out)
    assert out['b'] == [["6", "5"], ["8", "7"]]


def test_transcode_bad_signals(tmp_path, config_file, raw_proof):
    proof_path = tmp_path / "proof.json"
    public_path = tmp_path / "public.json"
    artifacts.write_json(raw_proof, proof_path)
    artifacts.write_json(["1", "2"], public_path)

    assert run(config_file, 'transcode', '--proof', str(proof_path),
               '--public', str(public_path)) == 1


def test_demo_without_prover(tmp_path, config_file):
    assert run(config_file, 'demo') == 0
    assert (tmp_path / "results" / "credential_demo_report.json").exists()
    assert (tmp_path / "artifacts" / artifacts.INPUT_FILE).exists()


def test_transcode_oversized_coordinate(tmp_path, config_file, raw_proof, public_signals):
    raw_proof['pi_a'][0] = "9" * 5000
    proof_path = tmp_path / "proof.json"
    public_path = tmp_path / "public.json"
    artifacts.write_json(raw_proof, proof_path)
    artifacts.write_json(public_signals, public_path)

    assert run(config_file, 'transcode', '--proof', str(proof_path),
               '--public', str(public_path)) == 1
