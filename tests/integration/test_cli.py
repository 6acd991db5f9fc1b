"""
Integration tests for the CLI.

Tests cover:
- gen: YAML output, --out, --cache reuse, --json, errors
- eval: single expression evaluation
- parse: segment table and JSON output
- --version
"""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from nmpolicy import StateGenerator, __version__
from nmpolicy.cli import app
from nmpolicy.schema import load_cached_state, load_policy

runner = CliRunner()


POLICY_YAML = """
capture:
  default-gw: routes.running.destination=="0.0.0.0/0"
desiredState:
  interfaces:
  - name: br1
    type: linux-bridge
    bridge:
      port:
      - name: "{{ capture.default-gw.routes.running.0.next-hop-interface }}"
"""


@pytest.fixture
def policy_file(temp_dir: Path) -> Path:
    path = temp_dir / "policy.yaml"
    path.write_text(POLICY_YAML)
    return path


@pytest.fixture
def state_file(temp_dir: Path, routes_state: bytes) -> Path:
    path = temp_dir / "current.yaml"
    path.write_bytes(routes_state)
    return path


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestGenCommand:
    """Tests for `nmpolicy gen`."""

    def test_gen_writes_output(self, policy_file: Path, state_file: Path, temp_dir: Path) -> None:
        """Generated state is written to --out."""
        out = temp_dir / "generated.yaml"
        result = runner.invoke(app, ["gen", str(policy_file), "--state", str(state_file), "--out", str(out)])
        assert result.exit_code == 0, result.output

        data = yaml.safe_load(out.read_text())
        assert data["desiredState"]["interfaces"][0]["bridge"]["port"] == [{"name": "eth1"}]
        capture = data["cache"]["capture"]["default-gw"]
        assert capture["state"]["routes"]["running"][0]["destination"] == "0.0.0.0/0"
        assert capture["metaInfo"]["version"] == "0"
        assert capture["metaInfo"]["time"] == data["metaInfo"]["time"]

    def test_gen_reuses_cache(self, policy_file: Path, state_file: Path, temp_dir: Path) -> None:
        """A generated file passed as --cache is reused without current state."""
        first = temp_dir / "first.yaml"
        second = temp_dir / "second.yaml"
        result = runner.invoke(app, ["gen", str(policy_file), "-s", str(state_file), "-o", str(first)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["gen", str(policy_file), "--cache", str(first), "-o", str(second)])
        assert result.exit_code == 0, result.output

        first_data = yaml.safe_load(first.read_text())
        second_data = yaml.safe_load(second.read_text())
        assert second_data["cache"] == first_data["cache"]
        assert second_data["desiredState"] == first_data["desiredState"]

    def test_gen_cache_file_keeps_state_bytes(self, temp_dir: Path) -> None:
        """Captured states written with --out load back as the engine produced them."""
        policy = temp_dir / "policy.yaml"
        policy.write_text('capture:\n  eth: interfaces.name=="eth1"\n', encoding="utf-8")
        state = temp_dir / "current.yaml"
        state.write_text(
            "interfaces:\n- name: eth1\n  description: café\n- name: eth2\n",
            encoding="utf-8",
        )
        out = temp_dir / "generated.yaml"
        result = runner.invoke(app, ["gen", str(policy), "-s", str(state), "-o", str(out)])
        assert result.exit_code == 0, result.output

        expected = StateGenerator().generate(load_policy(policy), state.read_bytes())
        reloaded = load_cached_state(out)
        assert reloaded.capture["eth"].state == expected.state.cache.capture["eth"].state
        assert "café".encode() in reloaded.capture["eth"].state

    def test_gen_json(self,policy_file: Path, state_file: Path) -> None:
        """--json prints a report of the generation."""
        result = runner.invoke(app, ["gen", str(policy_file), "-s", str(state_file), "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data["summary"]["total_captures"] == 1
        assert data["summary"]["resolved_captures"] == 1
        assert data["captures"][0]["name"] == "default-gw"
        assert data["captures"][0]["source"] == "resolved"

    def test_gen_stdout(self, temp_dir: Path) -> None:
        """Without --out the generated state goes to stdout."""
        policy = temp_dir / "policy.yaml"
        policy.write_text("desiredState:\n  interfaces: []\n")
        result = runner.invoke(app, ["gen", str(policy)])
        assert result.exit_code == 0, result.output
        assert "interfaces: []" in result.stdout

    def test_gen_missing_path(self, policy_file: Path, temp_dir: Path) -> None:
        """A capture that cannot resolve exits with status 1."""
        state = temp_dir / "empty.yaml"
        state.write_text("interfaces: []\n")
        result = runner.invoke(app, ["gen", str(policy_file), "-s", str(state), "--json"])
        assert result.exit_code == 1

        data = json.loads(result.stdout)
        assert data["error"] is True
        assert data["error_type"] == "generation_error"
        assert data["details"]["error_type"] == "PathNotFoundError"

    def test_gen_invalid_policy(self, temp_dir: Path) -> None:
        """A policy that fails validation exits with status 1."""
        policy = temp_dir / "policy.yaml"
        policy.write_text("captures: {}\n")
        result = runner.invoke(app, ["gen", str(policy), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_type"] == "load_error"

    def test_gen_missing_file(self, temp_dir: Path) -> None:
        """A missing policy file is rejected by argument validation."""
        result = runner.invoke(app, ["gen", str(temp_dir / "missing.yaml")])
        assert result.exit_code != 0


class TestEvalCommand:
    """Tests for `nmpolicy eval`."""

    def test_eval(self, state_file: Path, default_route_capture: bytes) -> None:
        result = runner.invoke(
            app,
            ["eval", 'routes.running.destination=="0.0.0.0/0"', "--state", str(state_file)],
        )
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.stdout) == yaml.safe_load(default_route_capture)

    def test_eval_parse_error(self, state_file: Path) -> None:
        result = runner.invoke(app, ["eval", "routes..running", "-s", str(state_file), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["details"]["error_type"] == "ParseError"
        assert data["details"]["context"]["position"] == 7


class TestParseCommand:
    """Tests for `nmpolicy parse`."""

    def test_parse_json(self) -> None:
        result = runner.invoke(app, ["parse", 'routes.running.destination=="0.0.0.0/0"', "--json"])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert [s["name"] for s in data["segments"]] == ["routes", "running", "destination"]
        assert data["segments"][2]["filter"] == {"field": "destination", "literal": "0.0.0.0/0"}
        assert data["segments"][0]["filter"] is None

    def test_parse_table(self) -> None:
        result = runner.invoke(app, ["parse", "routes.running"])
        assert result.exit_code == 0, result.output
        assert "routes" in result.stdout
        assert "running" in result.stdout

    def test_parse_error(self) -> None:
        result = runner.invoke(app, ["parse", 'destination=="x"', "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_type"] == "parse_error"
