"""
Tests for the command-line interface.
"""

import json
import textwrap

import pytest

from eucalyptus.__main__ import main
from eucalyptus.config import EUCALYPTUS_CONFIG, clear_cache


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.delenv(EUCALYPTUS_CONFIG, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def program(tmp_path):
    """Write a source file and return its path as a string."""
    def _write(source, name="prog.eu"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return str(path)
    return _write


class TestRunCommand:
    """Test 'run'."""

    def test_prints_last_value(self, program, capsys):
        path = program("""\
            let add a b = a + b
            add 2 3
        """)
        assert main(["run", path]) == 0
        assert capsys.readouterr().out == "5\n"

    def test_prints_strings_bare(self, program, capsys):
        assert main(["run", program("'c' + 'a' + 't'\n")]) == 0
        assert capsys.readouterr().out == "cat\n"

    def test_empty_program_prints_nothing(self, program, capsys):
        assert main(["run", program("# nothing\n")]) == 0
        assert capsys.readouterr().out == ""

    def test_runtime_error(self, program, capsys):
        path = program("let a = 1\na = 2\n")
        assert main(["run", path]) == 1
        err = capsys.readouterr().err
        assert "error[E403]" in err
        assert "prog.eu:2:1" in err
        assert "a = 2" in err

    def test_json_error(self, program, capsys):
        assert main(["run", "--json", program("nope\n")]) == 1
        data = json.loads(capsys.readouterr().err)
        assert data["code"] == "E401"
        assert data["range"]["start"]["line"] == 1

    def test_json_value(self, program, capsys):
        assert main(["run", "--json", program('"hi"\n')]) == 0
        assert json.loads(capsys.readouterr().out) == {"kind": "str", "value": '"hi"'}

    def test_self_containing_array(self, program, capsys):
        path = program("""\
            let a = [1]
            push a a
            a
        """)
        assert main(["run", path]) == 0
        assert capsys.readouterr().out == "[1, [...]]\n"

    def test_deep_nesting(self, program, capsys):
        assert main(["run", program("(" * 1000 + "1" + ")" * 1000 + "\n")]) == 1
        assert "error[E108]" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "absent.eu")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_max_call_depth_option(self, program, capsys):
        path = program("""\
            let f n = f (n + 1)
            f 0
        """)
        assert main(["run", "--max-call-depth", "5", path]) == 1
        err = capsys.readouterr().err
        assert "E407" in err
        assert "exceeded 5" in err

    def test_invalid_max_call_depth(self, program, capsys):
        assert main(["run", "--max-call-depth", "0", program("1\n")]) == 1
        assert "max_call_depth must be positive" in capsys.readouterr().err

    def test_config_option(self, program, tmp_path, capsys):
        config = tmp_path / "eu.yaml"
        config.write_text("max_call_depth: 3\n", encoding="utf-8")
        path = program("""\
            let f n = f n
            f 0
        """)
        assert main(["run", "--config", str(config), path]) == 1
        assert "exceeded 3" in capsys.readouterr().err

    def test_missing_config_file(self, program, tmp_path, capsys):
        assert main(["run", "-c", str(tmp_path / "none.yaml"), program("1\n")]) == 1
        assert "Config file not found" in capsys.readouterr().err


class TestCheckCommand:
    """Test 'check'."""

    def test_ok(self, program, capsys):
        path = program("""\
            let x = 1
            x + 1
        """)
        assert main(["check", path]) == 0
        assert capsys.readouterr().out == "OK: prog.eu - 2 statement(s), no errors\n"

    def test_does_not_evaluate(self, program, capsys):
        assert main(["check", program("undefined_name\n")]) == 0

    def test_syntax_error(self, program, capsys):
        assert main(["check", program("let = 1\n")]) == 1
        err = capsys.readouterr().err
        assert "E101" in err
        assert "let = 1" in err

    def test_lex_error_json(self, program, capsys):
        assert main(["check", "--json", program('"open\n')]) == 1
        assert json.loads(capsys.readouterr().err)["code"] == "E002"


class TestTokensCommand:
    """Test 'tokens'."""

    def test_text_output(self, program, capsys):
        assert main(["tokens", program("let x =\n  1\n")]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "1:1\tLET"
        assert lines[1] == "1:5\tIDENTIFIER('x')"
        assert any(line.endswith("BLOCK_START") for line in lines)
        assert lines[-1].endswith("EOF")

    def test_json_output(self, program, capsys):
        assert main(["tokens", "--json", program("a\nb\n")]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [t["type"] for t in data] == ["IDENTIFIER", "ITEM_SEP", "IDENTIFIER", "EOF"]
        assert data[0]["lexeme"] == "a"

    def test_layout_error(self, program, capsys):
        assert main(["tokens", program("let f =\n        1\n    2\n")]) == 1
        assert "E150" in capsys.readouterr().err


class TestEvalCommand:
    """Test 'eval'."""

    def test_expression(self, capsys):
        assert main(["eval", "'c' + 'a' + 't'"]) == 0
        assert capsys.readouterr().out == "cat\n"

    def test_collection_display(self, capsys):
        assert main(["eval", '[1, "a", 2.5]']) == 0
        assert capsys.readouterr().out == '[1, "a", 2.5]\n'

    def test_index_expression(self, capsys):
        assert main(["eval", '{a: [1, 2]}["a"][1]']) == 0
        assert capsys.readouterr().out == "2\n"

    def test_binding(self, capsys):
        assert main(["eval", "let x = 2 ^ 10"]) == 0
        assert capsys.readouterr().out == "1024\n"

    def test_error(self, capsys):
        assert main(["eval", "1 / 0"]) == 1
        assert "E408" in capsys.readouterr().err

    def test_requires_action(self):
        with pytest.raises(SystemExit):
            main([])
