from __future__ import annotations

import json
from pathlib import Path

import pytest

import listcore.cli
from listcore.cli import main

pytestmark = [pytest.mark.unit, pytest.mark.usefixtures("reset_logger")]


def run_cli(argv: list[str]) -> int:
    return main(argv)


def build(tmp_path: Path, document, name: str = "state.json") -> Path:
    source = tmp_path / "input.json"
    source.write_text(json.dumps(document), encoding="utf-8")
    state = tmp_path / name
    assert run_cli(["build", str(source), "-o", str(state)]) == 0
    return state


def test_cli_build_and_show_list(tmp_path, capsys):
    state = build(tmp_path, ["pear", "apple", "pear"])
    captured = capsys.readouterr()
    assert "duplicate 'pear' skipped" in captured.err

    assert run_cli(["show", str(state)]) == 0
    assert capsys.readouterr().out.splitlines() == ["0: pear", "1: apple"]


def test_cli_show_json(tmp_path, capsys):
    state = build(tmp_path, ["a"])
    capsys.readouterr()

    run_cli(["show", str(state), "--format", "json"])

    rows = json.loads(capsys.readouterr().out)
    assert rows == [{"index": 0, "data": "a", "state": 0, "enabled": True, "selected": False}]


def test_cli_build_and_show_groups(tmp_path, capsys):
    state = build(tmp_path, {"fruit": ["apple"], "veg": []})
    capsys.readouterr()

    run_cli(["show", str(state)])

    assert capsys.readouterr().out.splitlines() == ["0: fruit", "  0: apple", "1: veg"]


def test_cli_filter_list_and_save(tmp_path, capsys):
    state = build(tmp_path, ["Apple", "banana", "cherry"])
    filtered = tmp_path / "filtered.json"
    capsys.readouterr()

    assert run_cli(["filter", str(state), "an", "-o", str(filtered)]) == 0
    assert capsys.readouterr().out.splitlines() == ["0: banana"]

    run_cli(["filter", str(state), "a", "--case-sensitive"])
    assert capsys.readouterr().out.splitlines() == ["0: banana"]

    run_cli(["show", str(filtered)])
    assert capsys.readouterr().out.splitlines() == ["0: banana"]


def test_cli_filter_children_hides_empty_groups(tmp_path, capsys):
    state = build(tmp_path, {"fruit": ["apple", "pear"], "veg": ["bean"]})
    capsys.readouterr()

    run_cli(["filter", str(state), "ea", "--children", "--hide-empty-groups"])

    assert capsys.readouterr().out.splitlines() == [
        "0: fruit",
        "  0: pear",
        "1: veg",
        "  0: bean",
    ]

    run_cli(["filter", str(state), "pp", "--children", "--hide-empty-groups"])

    assert capsys.readouterr().out.splitlines() == ["0: fruit", "  0: apple"]


def test_cli_filter_groups(tmp_path, capsys):
    state = build(tmp_path, {"fruit": [], "veg": []})
    capsys.readouterr()

    run_cli(["filter", str(state), "veg"])

    assert capsys.readouterr().out.splitlines() == ["0: veg"]


def test_cli_sort(tmp_path, capsys):
    state = build(tmp_path, ["b", "c", "a"])
    sorted_state = tmp_path / "sorted.json"
    capsys.readouterr()

    run_cli(["sort", str(state), "--descending", "-o", str(sorted_state)])
    assert capsys.readouterr().out.splitlines() == ["0: c", "1: b", "2: a"]

    run_cli(["show", str(sorted_state)])
    assert capsys.readouterr().out.splitlines() == ["0: c", "1: b", "2: a"]


def test_cli_sort_children(tmp_path, capsys):
    state = build(tmp_path, {"b": ["y", "x"], "a": ["z"]})
    capsys.readouterr()

    run_cli(["sort", str(state), "--children"])

    assert capsys.readouterr().out.splitlines() == ["0: b", "  0: x", "  1: y", "1: a", "  0: z"]


def test_cli_rejects_unusable_state(tmp_path, capsys):
    garbage = tmp_path / "garbage.json"
    garbage.write_text("not listcore state", encoding="utf-8")

    assert run_cli(["show", str(garbage)]) == 1
    assert run_cli(["sort", str(tmp_path / "missing.json")]) == 1
    err = capsys.readouterr().err
    assert "does not hold usable listcore state" in err
    assert "unable to read" in err


def test_cli_rejects_scalar_input(tmp_path, capsys):
    source = tmp_path / "input.json"
    source.write_text("42", encoding="utf-8")

    assert run_cli(["build", str(source), "-o", str(tmp_path / "out.json")]) == 1
    assert "expected a JSON array or object" in capsys.readouterr().err


def test_cli_settings_apply_to_build(tmp_path, capsys):
    settings = tmp_path / "listcore.toml"
    settings.write_text("[list]\nallow_duplicates = true\n", encoding="utf-8")
    source = tmp_path / "input.json"
    source.write_text(json.dumps(["a", "a"]), encoding="utf-8")
    state = tmp_path / "state.json"

    run_cli(["--settings", str(settings), "build", str(source), "-o", str(state)])
    run_cli(["show", str(state)])

    assert capsys.readouterr().out.splitlines() == ["0: a", "1: a"]


def test_cli_invalid_settings_exit(tmp_path):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"list": {"number_of_states": 0}}))

    with pytest.raises(SystemExit) as excinfo:
        run_cli(["--settings", str(settings), "show", str(tmp_path / "x.json")])
    assert excinfo.value.code == 2


def test_cli_package_exposes_entry_point():
    from listcore.cli.main import main as entry_point

    assert callable(listcore.cli.main)
    assert main is entry_point
    assert listcore.cli.main is entry_point


@pytest.mark.parametrize(
    "document",
    [["a", None, "b"], {"fruit": ["apple", None]}, {"fruit": None}],
)
def test_cli_build_refuses_null_entries(tmp_path, capsys, document):
    source = tmp_path / "input.json"
    source.write_text(json.dumps(document), encoding="utf-8")
    state = tmp_path / "state.json"

    assert run_cli(["build", str(source), "-o", str(state)]) == 1
    err = capsys.readouterr().err.splitlines()
    assert any(line.startswith(f"error: {source}: ") for line in err)
    assert not state.exists()
