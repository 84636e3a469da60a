import importlib.util
from pathlib import Path

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "serp_search.py"


def _load_cli():
    spec = importlib.util.spec_from_file_location("serp_search", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_safe_search_flag_can_be_switched_either_way() -> None:
    cli = _load_cli()

    assert cli.parse_args(["q"]).safe_search is None
    assert cli.parse_args(["q", "--safe-search"]).safe_search is True
    assert cli.parse_args(["q", "--no-safe-search"]).safe_search is False


def test_repeatable_filters_and_follow_ups() -> None:
    cli = _load_cli()

    args = cli.parse_args(["a", "b", "--include", ".edu", "--include", ".gov", "--follow-ups"])

    assert args.queries == ["a", "b"]
    assert args.include == [".edu", ".gov"]
    assert args.follow_ups is True
