"""Test the command line handlers end to end."""

import json

import pytest

from casesmith import main as cli
from casesmith.output import INDEX_FILE, SECURITY_FLOW_FILE
from casesmith.parser_loader import ParserLoadError
from casesmith.processing.parallel_processor import RESULTS_DIR_NAME


@pytest.fixture
def two_handlers(tmp_path):
    """Two files, each exporting a ``handler`` that reads a secret from the environment."""
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / "handler.ts").write_text(
        "export function handler() {\n  const key = process.env.SECRET;\n  return key;\n}\n"
    )
    (tmp_path / "b" / "handler.ts").write_text(
        "export function handler() {\n  return fetch(process.env.SECRET_URL);\n}\n"
    )
    return tmp_path


class TestGenerate:
    """Test ``generate`` against temporary source trees."""

    def test_two_files_with_secrets(self, two_handlers):
        flow = cli.handle_generate(str(two_handlers), "", executor="thread")

        assert flow is not None
        assert flow.index.functions == 2
        assert flow.index.pii_edges >= 2
        assert flow.index.boundary_crossings >= 1

        results = two_handlers / RESULTS_DIR_NAME
        for sub in ("a", "b"):
            cfgs = json.loads((results / sub / "handler.cfg.json").read_text())
            assert any(n.startswith("SECRET:") for n in cfgs["handler"]["nodes"])

        payload = json.loads((results / SECURITY_FLOW_FILE).read_text())
        assert payload["index"] == flow.index.to_dict()
        assert (results / INDEX_FILE).read_text().startswith("functions: 2\n")

    def test_repeated_runs_are_identical(self, two_handlers):
        first = cli.handle_generate(str(two_handlers), "", executor="thread")
        second = cli.handle_generate(str(two_handlers), "", executor="thread")
        assert first.to_dict() == second.to_dict()

    def test_empty_directory(self, tmp_path):
        flow = cli.handle_generate(str(tmp_path), "", executor="thread")
        assert flow is not None
        assert flow.index.to_dict() == {
            "functions": 0,
            "edges": 0,
            "boundary_crossings": 0,
            "pii_edges": 0,
        }
        assert flow.edges == []
        assert (tmp_path / RESULTS_DIR_NAME / SECURITY_FLOW_FILE).is_file()

    def test_missing_output(self, tmp_path):
        assert cli.handle_generate(None, "") is None
        assert cli.handle_generate(str(tmp_path / "nope"), "") is None

    def test_output_is_a_file(self, tmp_path):
        target = tmp_path / "file.ts"
        target.write_text("function f() {}\n")
        assert cli.handle_generate(str(target), "") is None

    def test_config_results_dir(self, two_handlers):
        config = '[casesmith]\nresults_dir = "reports"\nexecutor = "thread"\n'
        flow = cli.handle_generate(str(two_handlers), config)
        assert flow.index.functions == 2
        assert (two_handlers / "reports" / SECURITY_FLOW_FILE).is_file()
        assert not (two_handlers / RESULTS_DIR_NAME).exists()


class TestMain:
    """Test argument parsing and exit codes."""

    def test_generate_command(self, two_handlers, tmp_path):
        code = cli.main(
            [
                "--config",
                str(tmp_path / "missing.toml"),
                "generate",
                "-o",
                str(two_handlers),
                "--executor",
                "thread",
                "--workers",
                "2",
            ]
        )
        assert code == 0
        assert (two_handlers / RESULTS_DIR_NAME / SECURITY_FLOW_FILE).is_file()

    def test_generate_missing_directory(self, tmp_path):
        code = cli.main(
            ["--config", str(tmp_path / "missing.toml"), "generate", "-o", str(tmp_path / "x")]
        )
        assert code == 1

    def test_parser_load_failure(self, two_handlers, tmp_path, monkeypatch):
        def fail(name):
            raise ParserLoadError(f"Unsupported language: {name}")

        monkeypatch.setattr(cli, "load_language", fail)
        code = cli.main(
            ["--config", str(tmp_path / "missing.toml"), "generate", "-o", str(two_handlers)]
        )
        assert code == 1
        assert not (two_handlers / RESULTS_DIR_NAME).exists()

    def test_run_command(self, tmp_path, capsys):
        code = cli.main(
            ["--config", str(tmp_path / "missing.toml"), "run", "-n", "demo", "-c", "2", "-v"]
        )
        assert code == 0
        out = capsys.readouterr().out
        assert out.count("Root node: program") == 2
        assert "helloWorld" in out

    def test_run_requires_name(self):
        with pytest.raises(SystemExit):
            cli.build_arg_parser().parse_args(["run"])
