"""Argument parsing for the decay CLI."""
import pytest

from domain.enums import Region
from presentation.cli.accounts_command import parse_riot_id
from presentation.cli.decay_command import build_parser


def test_stats_subcommand():
    args = build_parser().parse_args(["--json", "stats", "--user", "auth-1"])

    assert args.command == "stats"
    assert args.user == "auth-1"
    assert args.json is True


def test_decay_subcommand_parses_region():
    args = build_parser().parse_args(["decay", "--region", "euw1"])

    assert args.region is Region.EUW1


def test_unknown_region_is_a_usage_error():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["decay", "--region", "ZZ9"])


@pytest.mark.parametrize("value, expected", [
    ("Faker#KR1", ("Faker", "KR1")),
    ("Hide on bush#KR1", ("Hide on bush", "KR1")),
])
def test_parse_riot_id(value, expected):
    assert parse_riot_id(value) == expected


def test_parse_riot_id_requires_tag():
    with pytest.raises(ValueError):
        parse_riot_id("Faker")
