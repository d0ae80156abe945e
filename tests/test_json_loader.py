import json
from pathlib import Path

import pytest

from draftforge.app import DraftApp
from draftforge.config import DraftForgeConfig
from draftforge.domain.cards import Color, Rarity
from draftforge.loaders import (
    load_league_from_json,
    parse_card_instance,
    parse_league_dict,
    validate_league_dict,
)


def league_payload() -> dict:
    return {
        "teams": [
            {"id": "alpha", "name": "Alpha Wolves", "balance": 100, "members": ["u1", "u2"]},
            {"id": "beta", "name": "Beta Bears", "balance": 80, "members": ["u3"]},
        ],
        "draftOrder": ["beta", "alpha"],
        "cards": [
            {
                "instanceId": "bolt#1",
                "cardId": "bolt",
                "name": "Lightning Bolt",
                "type": "Instant",
                "rarity": "uncommon",
                "colors": ["r"],
                "manaCost": "{R}",
                "manaValue": 1,
                "rating": 4.5,
                "cost": 12,
            },
            {"instanceId": "wastes#1", "name": "Wastes", "type": "Basic Land"},
        ],
    }


def test_parse_league_dict_builds_instances():
    definition = parse_league_dict(league_payload())

    bolt, wastes = definition.cards
    assert bolt.colors == (Color.RED,)
    assert bolt.rarity is Rarity.UNCOMMON
    assert bolt.cost == 12
    assert wastes.card_id == "wastes#1"
    assert wastes.cost == 1
    assert wastes.is_land
    assert definition.draft_order == ("beta", "alpha")
    assert definition.team("alpha").members == ("u1", "u2")


def test_draft_order_defaults_to_team_order():
    payload = league_payload()
    del payload["draftOrder"]

    assert parse_league_dict(payload).draft_order == ("alpha", "beta")


def test_zero_cost_is_charged_as_one():
    card = parse_card_instance({"instanceId": "free#1", "name": "Free Relic", "cost": 0})

    assert card.cost == 1


def test_validate_league_dict_reports_problems():
    payload = league_payload()
    payload["draftOrder"] = ["beta", "gamma"]
    payload["cards"].append({"instanceId": "bolt#1", "name": "Again", "colors": ["X"], "cost": -1})

    errors = validate_league_dict(payload)

    assert any("unknown team 'gamma'" in err for err in errors)
    assert any("defined multiple times" in err for err in errors)
    assert any("invalid color 'X'" in err for err in errors)
    assert any("invalid 'cost'" in err for err in errors)
    with pytest.raises(ValueError):
        parse_league_dict(payload)


@pytest.mark.asyncio()
async def test_load_league_from_json_seeds_stores(tmp_path: Path):
    json_path = tmp_path / "league.json"
    json_path.write_text(json.dumps(league_payload()), encoding="utf-8")

    app = DraftApp(DraftForgeConfig())
    await load_league_from_json(app, json_path)

    assert {card.instance_id for card in await app.pool_store.available_cards()} == {"bolt#1", "wastes#1"}
    assert await app.pool_store.team_balance("beta") == 80
    assert await app.membership.team_member_count("alpha") == 2
    assert (await app.turns.current_turn()).team_id == "beta"
