"""Loaders for declarative league definitions."""

from .json_loader import (
    LeagueDefinition,
    TeamDefinition,
    load_league_from_json,
    parse_card_instance,
    parse_league_dict,
    validate_league_dict,
    validate_league_file,
)

__all__ = [
    "LeagueDefinition",
    "TeamDefinition",
    "load_league_from_json",
    "parse_card_instance",
    "parse_league_dict",
    "validate_league_dict",
    "validate_league_file",
]
