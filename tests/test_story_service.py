import random

import pytest

from ruang_hampa.data.repositories import StoryRepository
from ruang_hampa.domain.defs import RelationshipChangeDef, StoryChoiceDef
from ruang_hampa.domain.state import START_NODE_ID
from ruang_hampa.services.story_service import (
    KeepsakeDiscoveredEvent,
    ObjectInspectedEvent,
    SaveFailedEvent,
    format_timestamp,
    resolve_session_phase,
)
from tests.helpers.story_fixtures import FIXED_MOMENT, make_engine, node, write_story


def _choose(engine, text: str):
    view = engine.get_current_node_view()
    for choice in view.choices:
        if choice.text == text:
            return engine.apply_choice(choice)
    raise AssertionError(f"choice {text!r} not offered at {view.node_id}")


def _loop_story(tmp_path) -> StoryRepository:
    base = write_story(
        tmp_path,
        {
            "START": node(actions=[{"text": "Ke ruang A", "nextNodeId": "A"}], mentalEnergy=50),
            "A": node(
                actions=[{"text": "Kembali", "nextNodeId": "START"}],
                newMemento={"name": "Foto", "description": "Foto lama."},
            ),
        },
    )
    return StoryRepository(base)


def test_new_engine_starts_at_start_with_defaults() -> None:
    engine, _ = make_engine()
    state = engine.get_state()

    assert state.current_node_id == START_NODE_ID
    assert state.mental_energy == 50
    assert (state.relationships.bapak, state.relationships.ibu, state.relationships.surya) == (50, 50, 50)
    assert state.keepsakes == []
    assert state.logbook == []
    assert state.typing_speed == 30
    assert state.has_seen_intro is False


def test_check_phone_applies_override_keepsake_and_log() -> None:
    engine, _ = make_engine()

    result = engine.apply_choice(StoryChoiceDef(text="Cek ponsel.", next_node_id="CHECK_PHONE"))
    state = engine.get_state()

    assert state.current_node_id == "CHECK_PHONE"
    assert state.mental_energy == 45
    assert [keepsake.name for keepsake in state.keepsakes] == ["Pesan dari Surya"]
    assert len(state.logbook) == 1
    assert state.logbook[0].choice == "Cek ponsel."
    assert state.logbook[0].node_id == START_NODE_ID
    assert result.node_view is not None
    assert result.node_view.node_id == "CHECK_PHONE"
    assert any(isinstance(evt, KeepsakeDiscoveredEvent) for evt in result.events)


def test_energy_delta_clamps_at_zero(tmp_path) -> None:
    base = write_story(
        tmp_path,
        {
            "START": node(
                mentalEnergy=10,
                actions=[{"text": "Menyerah", "nextNodeId": "LOW", "mentalEnergyChange": -20}],
            ),
            "LOW": node(),
        },
    )
    engine, _ = make_engine(StoryRepository(base))
    engine.apply_choice(StoryChoiceDef(text="Mulai", next_node_id="START"))
    assert engine.get_state().mental_energy == 10

    _choose(engine, "Menyerah")

    assert engine.get_state().current_node_id == "LOW"
    assert engine.get_state().mental_energy == 0


def test_energy_delta_without_override_on_real_story() -> None:
    engine, _ = make_engine()
    for text in (
        "Bangun dari tempat tidur.",
        "Menuju dapur.",
        "Ucapkan 'Selamat pagi.'",
        "Setelah sarapan, apa yang harus kulakukan?",
        "Pergi ke kampus.",
        "Pulang setelah kelas selesai.",
        "Tetap di kamar sampai dipanggil.",
    ):
        _choose(engine, text)
    assert engine.get_state().mental_energy == 20

    _choose(engine, "Tetap diam dan mendengarkan.")

    state = engine.get_state()
    assert state.current_node_id == "STAY_SILENT"
    assert state.mental_energy == 10
    assert state.relationships.ibu == 55


def test_absolute_override_wins_over_choice_delta() -> None:
    engine, _ = make_engine()
    for text in (
        "Bangun dari tempat tidur.",
        "Menuju dapur.",
        "Duduk di meja makan tanpa bicara.",
        "Setelah sarapan, apa yang harus kulakukan?",
    ):
        _choose(engine, text)

    _choose(engine, "Bolos saja. Kembali ke kamar.")

    state = engine.get_state()
    assert state.current_node_id == "SKIP_CLASS"
    assert state.mental_energy == 25
    assert state.relationships.ibu == 45


def test_relationship_change_clamps_at_bounds() -> None:
    engine, _ = make_engine()
    for _ in range(12):
        engine.apply_choice(
            StoryChoiceDef(text="Peluk Ibu", next_node_id="KITCHEN", relationship_change=_rel("Ibu", 5))
        )
    assert engine.get_state().relationships.ibu == 100

    engine.apply_choice(StoryChoiceDef(text="Bentak Bapak", next_node_id="KITCHEN", relationship_change=_rel("Bapak", -80)))
    assert engine.get_state().relationships.bapak == 0


def _rel(character: str, change: int) -> RelationshipChangeDef:
    return RelationshipChangeDef(character=character, change=change)  # type: ignore[arg-type]


def test_values_stay_in_bounds_over_random_play() -> None:
    rng = random.Random(20240501)
    engine, _ = make_engine()
    for _ in range(300):
        view = engine.get_current_node_view()
        if view.is_ending:
            engine.start_new_game()
            continue
        engine.apply_choice(rng.choice(view.choices))
        state = engine.get_state()
        assert 0 <= state.mental_energy <= 100
        rel = state.relationships
        assert all(0 <= value <= 100 for value in (rel.bapak, rel.ibu, rel.surya))
        assert 1 <= state.typing_speed <= 100


def test_get_state_returns_independent_copy() -> None:
    engine, _ = make_engine()
    engine.apply_choice(StoryChoiceDef(text="Cek ponsel.", next_node_id="CHECK_PHONE"))

    snapshot = engine.get_state()
    snapshot.relationships.ibu = 0
    snapshot.keepsakes.clear()
    snapshot.logbook.clear()
    snapshot.mental_energy = 99

    fresh = engine.get_state()
    assert fresh.relationships.ibu == 50
    assert len(fresh.keepsakes) == 1
    assert len(fresh.logbook) == 1
    assert fresh.mental_energy == 45
    assert engine.get_state() == engine.get_state()


def test_keepsake_is_granted_once_on_revisit(tmp_path) -> None:
    engine, _ = make_engine(_loop_story(tmp_path))

    first = _choose(engine, "Ke ruang A")
    _choose(engine, "Kembali")
    second = _choose(engine, "Ke ruang A")

    names = [keepsake.name for keepsake in engine.get_keepsakes()]
    assert names == ["Foto"]
    assert any(isinstance(evt, KeepsakeDiscoveredEvent) for evt in first.events)
    assert not any(isinstance(evt, KeepsakeDiscoveredEvent) for evt in second.events)
    assert len(engine.get_logbook()) == 3


def test_logbook_records_origin_node_and_timestamp() -> None:
    engine, _ = make_engine()

    _choose(engine, "Bangun dari tempat tidur.")
    _choose(engine, "Menuju dapur.")

    entries = engine.get_logbook()
    assert [entry.node_id for entry in entries] == [START_NODE_ID, "GET_UP"]
    assert entries[0].timestamp == "2024-05-01T08:30:15.123Z"


def test_format_timestamp_uses_utc_z_suffix() -> None:
    assert format_timestamp(FIXED_MOMENT) == "2024-05-01T08:30:15.123Z"


def test_missing_target_falls_back_to_start(tmp_path, caplog) -> None:
    base = write_story(
        tmp_path,
        {
            "START": node(
                mentalEnergy=60,
                newMemento={"name": "Kunci", "description": "Kunci rumah."},
                actions=[{"text": "Tersesat", "nextNodeId": "MISSING_NODE"}],
            ),
        },
    )
    engine, _ = make_engine(StoryRepository(base))

    with caplog.at_level("ERROR"):
        result = _choose(engine, "Tersesat")

    state = engine.get_state()
    assert state.current_node_id == START_NODE_ID
    assert state.mental_energy == 60
    assert [keepsake.name for keepsake in state.keepsakes] == ["Kunci"]
    assert state.logbook[0].choice == "Tersesat"
    assert result.node_view is not None and result.node_view.node_id == START_NODE_ID
    assert "MISSING_NODE" in caplog.text


def test_object_interaction_does_not_change_state() -> None:
    engine, store = make_engine()
    before = engine.get_state()
    obj = engine.get_current_node_view().objects[0]

    event = engine.interact_with_object(obj)

    assert isinstance(event, ObjectInspectedEvent)
    assert event.description == obj.description
    assert engine.get_state() == before
    assert engine.pop_events() == []
    assert not engine.has_saved_game()


@pytest.mark.parametrize(("requested", "expected"), [(0, 1), (-5, 1), (1, 1), (45, 45), (100, 100), (500, 100)])
def test_typing_speed_is_clamped(requested: int, expected: int) -> None:
    engine, _ = make_engine()

    assert engine.set_typing_speed(requested) == expected
    assert engine.get_state().typing_speed == expected


def test_typing_speed_settings_failure_is_reported() -> None:
    engine, store = make_engine()
    store.fail_writes = True

    engine.set_typing_speed(60)

    assert engine.get_state().typing_speed == 60
    assert any(isinstance(evt, SaveFailedEvent) for evt in engine.pop_events())


def test_endings_are_terminal_and_phase_follows() -> None:
    engine, _ = make_engine()
    assert engine.session_phase(False) == "not_started"
    assert engine.session_phase(True) == "intro"

    engine.mark_intro_as_seen()
    assert engine.session_phase(True) == "playing"
    assert not engine.is_ending()

    for text in (
        "Bangun dari tempat tidur.",
        "Menuju dapur.",
        "Ucapkan 'Selamat pagi.'",
        "Setelah sarapan, apa yang harus kulakukan?",
        "Pergi ke kampus.",
        "Pulang setelah kelas selesai.",
        "Tetap di kamar sampai dipanggil.",
        "Mencoba menjelaskan perasaanmu.",
        "Keluarga mencoba mengerti.",
        "Mungkin... ada harapan.",
    ):
        _choose(engine, text)

    view = engine.get_current_node_view()
    assert view.node_id == "GOOD_ENDING"
    assert view.is_ending
    assert view.choices == []
    assert engine.session_phase(True) == "ending"
    assert "Buku Sketsa" in [keepsake.name for keepsake in engine.get_keepsakes()]


def test_resolve_session_phase_without_engine() -> None:
    repo = StoryRepository()
    engine, _ = make_engine(repo)
    state = engine.get_state()
    state.has_seen_intro = True

    assert resolve_session_phase(True, state, repo.get("BAD_ENDING")) == "ending"
    assert resolve_session_phase(True, state, repo.get("EVENING")) == "playing"


def test_current_node_view_splits_paragraphs() -> None:
    engine, _ = make_engine()
    view = engine.get_current_node_view()

    assert view.location == "Kamar Banyu"
    assert view.image == "BANYU_ROOM_MORNING"
    assert len(view.paragraphs) == 2
    assert [choice.text for choice in view.choices] == [
        "Cek ponsel.",
        "Bangun dari tempat tidur.",
        "Tetap di tempat tidur sebentar lagi.",
    ]


def test_intro_text_comes_from_repository(tmp_path) -> None:
    base = write_story(tmp_path, {"START": node()}, intro="  Selamat datang.\n\n")
    engine, _ = make_engine(StoryRepository(base), intro_path=base)

    assert engine.get_intro_text() == "Selamat datang."


def test_describe_state_mentions_node() -> None:
    engine, _ = make_engine()
    assert "node=START" in engine.describe_state()
