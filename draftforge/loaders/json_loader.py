"""Load teams, draft order, and the card pool from a JSON league file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence, TYPE_CHECKING

from ..domain.cards import CardInstance, Color, Rarity, parse_colors

if TYPE_CHECKING:
    from ..app import DraftApp


@dataclass(slots=True)
class TeamDefinition:
    team_id: str
    name: str
    balance: int = 0
    members: tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class LeagueDefinition:
    teams: Sequence[TeamDefinition]
    draft_order: Sequence[str]
    cards: Sequence[CardInstance]

    def team(self, team_id: str) -> TeamDefinition | None:
        for team in self.teams:
            if team.team_id == team_id:
                return team
        return None


async def load_league_from_json(app: "DraftApp", path: str | Path) -> LeagueDefinition:
    """Load a league file and seed the app's stores with it."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    definition = parse_league_dict(data)
    await app.pool_store.add_instances(definition.cards)
    for team in definition.teams:
        await app.pool_store.set_balance(team.team_id, team.balance)
        for user_id in team.members:
            await app.membership.add_member(team.team_id, user_id)
    await app.turns.set_draft_order(definition.draft_order)
    return definition


def parse_league_dict(data: dict[str, Any]) -> LeagueDefinition:
    """Parse a JSON dict (already decoded) into domain objects."""
    errors = validate_league_dict(data)
    if errors:
        raise ValueError(_format_errors("League validation failed", errors))
    teams = tuple(parse_team(entry) for entry in data["teams"])
    cards = tuple(parse_card_instance(entry) for entry in data["cards"])
    draft_order = tuple(data.get("draftOrder") or (team.team_id for team in teams))
    return LeagueDefinition(teams=teams, draft_order=draft_order, cards=cards)


def parse_team(entry: dict[str, Any]) -> TeamDefinition:
    return TeamDefinition(
        team_id=entry["id"],
        name=entry.get("name", entry["id"]),
        balance=int(entry.get("balance", 0)),
        members=tuple(str(member) for member in entry.get("members", ())),
    )


def parse_card_instance(entry: dict[str, Any]) -> CardInstance:
    cost = entry.get("cost")
    return CardInstance(
        instance_id=entry["instanceId"],
        card_id=entry.get("cardId", entry["instanceId"]),
        name=entry["name"],
        type_line=entry.get("type", ""),
        rarity=Rarity(entry.get("rarity", Rarity.COMMON.value)),
        colors=parse_colors(entry.get("colors", ())),
        mana_cost=entry.get("manaCost", ""),
        mana_value=float(entry.get("manaValue", 0)),
        rating=float(entry.get("rating", 0)),
        cost=int(cost or 1),
    )


def validate_league_file(path: str | Path) -> list[str]:
    """Validate league JSON file and return a list of errors."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return validate_league_dict(data)


def validate_league_dict(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["League must be a JSON object."]

    teams_raw = data.get("teams")
    team_ids: set[str] = set()
    if not isinstance(teams_raw, list) or not teams_raw:
        errors.append("League must contain non-empty 'teams' array.")
    else:
        for idx, entry in enumerate(teams_raw, start=1):
            if not isinstance(entry, dict):
                errors.append(f"Team #{idx} must be an object.")
                continue
            team_id = entry.get("id")
            if not isinstance(team_id, str) or not team_id.strip():
                errors.append(f"Team #{idx} must define non-empty 'id'.")
                continue
            if team_id in team_ids:
                errors.append(f"Team id '{team_id}' defined multiple times.")
            team_ids.add(team_id)

            balance = entry.get("balance", 0)
            if not isinstance(balance, int) or isinstance(balance, bool) or balance < 0:
                errors.append(f"Team '{team_id}' balance must be a non-negative integer.")

            members = entry.get("members", [])
            if not isinstance(members, list):
                errors.append(f"Team '{team_id}' members must be an array.")
            elif len({str(member) for member in members}) != len(members):
                errors.append(f"Team '{team_id}' lists a member twice.")

    order = data.get("draftOrder")
    if order is not None:
        if not isinstance(order, list) or not order:
            errors.append("'draftOrder' must be a non-empty array when present.")
        else:
            if len(set(order)) != len(order):
                errors.append("'draftOrder' lists a team twice.")
            for team_id in order:
                if team_ids and team_id not in team_ids:
                    errors.append(f"'draftOrder' references unknown team '{team_id}'.")

    cards_raw = data.get("cards")
    if not isinstance(cards_raw, list) or not cards_raw:
        errors.append("League must contain non-empty 'cards' array.")
        return errors

    instance_ids: set[str] = set()
    for idx, entry in enumerate(cards_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Card #{idx} must be an object.")
            continue
        instance_id = entry.get("instanceId")
        if not isinstance(instance_id, str) or not instance_id.strip():
            errors.append(f"Card #{idx} must define non-empty 'instanceId'.")
            continue
        if instance_id in instance_ids:
            errors.append(f"Card instance '{instance_id}' defined multiple times.")
        instance_ids.add(instance_id)

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Card '{instance_id}' must define non-empty 'name'.")

        rarity_value = entry.get("rarity", Rarity.COMMON.value)
        try:
            Rarity(rarity_value)
        except ValueError:
            errors.append(f"Card '{instance_id}' has invalid rarity '{rarity_value}'.")

        colors = entry.get("colors", [])
        if not isinstance(colors, list):
            errors.append(f"Card '{instance_id}' colors must be an array.")
        else:
            for code in colors:
                try:
                    Color(str(code).strip().upper())
                except ValueError:
                    errors.append(f"Card '{instance_id}' has invalid color '{code}'.")

        for numeric in ("rating", "manaValue"):
            value = entry.get(numeric)
            if value is not None and (not isinstance(value, (int, float)) or isinstance(value, bool)):
                errors.append(f"Card '{instance_id}' '{numeric}' must be a number.")

        cost = entry.get("cost")
        if cost is not None and (not isinstance(cost, int) or isinstance(cost, bool) or cost < 0):
            errors.append(f"Card '{instance_id}' has invalid 'cost' value '{cost}'.")

    return errors


def _format_errors(prefix: str, errors: Iterable[str]) -> str:
    formatted = "\n".join(f"- {err}" for err in errors)
    return f"{prefix}:\n{formatted}"
