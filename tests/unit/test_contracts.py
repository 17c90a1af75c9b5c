"""Unit tests for parsing contracts and KDA coercion."""

import pytest
from pydantic import ValidationError

from jungle_coach.contracts import (
    GameResult,
    NormalizedGame,
    Participant,
    RawMatch,
    deaths_from_kda,
    format_kda,
    parse_kda,
)


class TestKDA:
    def test_partial_string_still_recovers_deaths(self) -> None:
        assert deaths_from_kda("9/5") == 5

    def test_round_trip(self) -> None:
        assert parse_kda("9/5/10") == (9, 5, 10)
        assert format_kda(*parse_kda("9/5/10")) == "9/5/10"
        assert deaths_from_kda("9/5/10") == 5

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", (0, 0, 0)),
            (None, (0, 0, 0)),
            ("3//4", (3, 0, 4)),
            (" 1 / 2 / 3 ", (1, 2, 3)),
            ("not a kda", (0, 0, 0)),
            ("9/5", (9, 5, 0)),
            ("1/2/3/4", (0, 0, 0)),
        ],
    )
    def test_malformed_input_yields_zeros(self, text, expected) -> None:
        assert parse_kda(text) == expected


class TestRawMatch:
    def test_parses_camel_case_and_ignores_unknown_fields(self, match_payload) -> None:
        payload = match_payload("EUN1_100")
        payload["info"]["somethingNew"] = {"nested": True}

        match = RawMatch.model_validate(payload)

        assert match.match_id == "EUN1_100"
        assert match.info.queue_id == 420
        participant = match.find_participant("puuid-tracked")
        assert participant is not None
        assert participant.team_position == "JUNGLE"
        assert participant.neutral_minions_killed == 160
        assert participant.has_smite

    def test_duration_seconds_vs_legacy_milliseconds(self, match_payload) -> None:
        modern = RawMatch.model_validate(match_payload("EUN1_1", duration_s=1800))
        assert modern.duration_ms == 1_800_000

        legacy_payload = match_payload("EUN1_2")
        legacy_payload["info"].pop("gameEndTimestamp")
        legacy_payload["info"]["gameDuration"] = 1_800_000
        assert RawMatch.model_validate(legacy_payload).duration_ms == 1_800_000

    def test_null_fields_fall_back_to_defaults(self) -> None:
        participant = Participant.model_validate(
            {"puuid": "p", "teamPosition": None, "kills": None, "championName": None}
        )
        assert participant.team_position == ""
        assert participant.kills == 0
        assert participant.champion_name == "Unknown"
        assert not participant.has_structured_role

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Participant.model_validate({"puuid": "p", "deaths": -1})

    def test_missing_game_creation_rejected(self, match_payload) -> None:
        payload = match_payload("EUN1_3")
        del payload["info"]["gameCreation"]
        with pytest.raises(ValidationError):
            RawMatch.model_validate(payload)


class TestNormalizedGame:
    def test_kda_is_computed_and_serialized(self, make_game) -> None:
        game = make_game(kills=9, deaths=5, assists=10)

        assert game.kda == "9/5/10"
        dumped = game.model_dump(by_alias=True, mode="json")
        assert dumped["kda"] == "9/5/10"
        assert dumped["matchId"] == "EUN1_1"
        assert dumped["jungleCS"] == 150
        assert dumped["result"] == "WIN"

    def test_json_round_trip(self, make_game) -> None:
        game = make_game(result=GameResult.LOSS)
        restored = NormalizedGame.model_validate_json(game.model_dump_json(by_alias=True))
        assert restored == game

    def test_derived_properties(self, make_game) -> None:
        game = make_game(kills=4, deaths=0, assists=6, minutes=25)

        assert game.kda_ratio == 10
        assert game.game_minutes == 25
        assert game.game_day == "2024-09-22"
        assert game.is_win
