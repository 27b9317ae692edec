from __future__ import annotations

from copy import deepcopy

from textcfg.config.models import ModelConfig, Settings
from textcfg.state.draft_store import SettingsDraftStore
from textcfg.state.headers import HeaderEntry


def test_initial_state_is_clean(draft_store: SettingsDraftStore, sample_settings) -> None:
    assert draft_store.baseline == sample_settings
    assert draft_store.draft == sample_settings
    assert draft_store.is_dirty is False
    assert draft_store.errors == {}
    assert draft_store.selection.provider_selected.item_id == "Alpha"


def test_default_store_starts_empty() -> None:
    store = SettingsDraftStore()

    assert store.baseline == Settings()
    assert len(store.headers) == 0


def test_constructor_copies_input(sample_settings) -> None:
    store = SettingsDraftStore(sample_settings)
    sample_settings.model_config.name = "changed"

    assert store.baseline.model_config.name == "llama3"


def test_properties_hand_out_copies(draft_store: SettingsDraftStore) -> None:
    draft = draft_store.draft
    draft.model_config.name = "mutated"
    draft.available_providers.clear()

    assert draft_store.draft.model_config.name == "llama3"
    assert len(draft_store.draft.available_providers) == 2


def test_draft_edits_never_touch_baseline(draft_store: SettingsDraftStore) -> None:
    result = draft_store.set_model_name("mistral")
    draft_store.set_temperature(1.5)
    draft_store.set_temperature_enabled(False)
    draft_store.set_use_markdown(True)

    assert result.handled is True
    assert result.changed_fields == ("model_config.name",)
    assert draft_store.draft.model_config == ModelConfig(name="mistral", use_temperature=False, temperature=1.5)
    assert draft_store.draft.inference_base_config.use_markdown_for_output is True
    assert draft_store.baseline.model_config.name == "llama3"
    assert draft_store.baseline.inference_base_config.use_markdown_for_output is False
    assert draft_store.is_dirty is True
    assert draft_store.selection.model_selected.item_id == "mistral"


def test_discard_draft_restores_baseline_and_is_idempotent(draft_store: SettingsDraftStore) -> None:
    draft_store.set_model_name("mistral")
    draft_store.add_blank_header()

    draft_store.discard_draft()
    first = draft_store.snapshot()
    draft_store.discard_draft()
    second = draft_store.snapshot()

    assert first.draft == first.baseline
    assert second.draft == first.draft
    assert second.is_dirty is False
    assert draft_store.headers.to_map() == {"X-Org": "acme"}


def test_discard_draft_clears_errors(draft_store: SettingsDraftStore) -> None:
    draft_store.mutate_draft("model_config.nope", 1)

    draft_store.discard_draft()

    assert draft_store.errors == {}


def test_mutate_draft_records_invalid_path(draft_store: SettingsDraftStore) -> None:
    result = draft_store.mutate_draft("model_config.nope", 1)

    assert result.handled is False
    assert "unknown field 'nope'" in result.error
    assert draft_store.errors["model_config.nope"] == result.error
    assert draft_store.is_dirty is False


def test_mutate_draft_clears_previous_field_error(draft_store: SettingsDraftStore) -> None:
    draft_store.set_error("model_config.name", "stale")

    draft_store.set_model_name("phi3")

    assert "model_config.name" not in draft_store.errors


def test_set_languages_requires_supported_language(draft_store: SettingsDraftStore) -> None:
    ok = draft_store.set_input_language("DE")
    rejected = draft_store.set_output_language("es")

    assert ok.handled is True
    assert draft_store.draft.language_config.default_input_language == "DE"
    assert rejected.handled is False
    assert draft_store.errors["default_output_language"] == "Language 'es' is not in supported languages"
    assert draft_store.draft.language_config.default_output_language == "fr"


def test_select_provider_changes_draft_current_only(draft_store: SettingsDraftStore) -> None:
    result = draft_store.select_provider("Beta")

    assert result.handled is True
    assert draft_store.draft.current_provider.provider_id == "provider-b"
    assert draft_store.baseline.current_provider.provider_id == "provider-a"
    assert draft_store.selection.provider_selected.item_id == "Beta"
    assert len(draft_store.headers) == 0


def test_select_unknown_provider(draft_store: SettingsDraftStore) -> None:
    result = draft_store.select_provider("Gamma")

    assert result.handled is False
    assert draft_store.errors["current_provider"] == "Provider 'Gamma' not found"


def test_load_replaces_both_snapshots_independently(draft_store: SettingsDraftStore, sample_settings) -> None:
    sample_settings.model_config.name = "phi3"
    draft_store.set_error("fetch_settings", "old")

    draft_store.load(sample_settings)
    sample_settings.model_config.name = "after-load"

    assert draft_store.baseline.model_config.name == "phi3"
    assert draft_store.draft.model_config.name == "phi3"
    assert draft_store.errors == {}


def test_commit_patch_applies_to_both_without_aliasing(draft_store: SettingsDraftStore, provider_b) -> None:
    provider_b.base_url = "http://10.0.0.2:1234/"

    draft_store.commit_patch("provider", provider_b)
    provider_b.base_url = "http://mutated/"

    assert draft_store.baseline.available_providers[1].base_url == "http://10.0.0.2:1234/"
    assert draft_store.draft.available_providers[1].base_url == "http://10.0.0.2:1234/"
    assert draft_store.is_dirty is False


def test_commit_patch_keeps_unrelated_draft_edits(draft_store: SettingsDraftStore) -> None:
    draft_store.set_model_name("mistral")

    draft_store.commit_patch("languages", ["en", "fr", "de", "es"])

    assert draft_store.draft.model_config.name == "mistral"
    assert draft_store.baseline.model_config.name == "llama3"
    assert draft_store.draft.language_config.languages[-1] == "es"
    assert draft_store.selection.language_items[-1].item_id == "es"


def test_commit_patch_rebuilds_headers_for_current_provider(draft_store: SettingsDraftStore, provider_a) -> None:
    provider_a.headers = {"X-Org": "acme", "X-Project": "p1"}

    draft_store.commit_patch("provider", provider_a)

    assert draft_store.headers.to_map() == {"X-Org": "acme", "X-Project": "p1"}
    assert draft_store.baseline.current_provider.headers == {"X-Org": "acme", "X-Project": "p1"}


def test_header_blank_row_flow(draft_store: SettingsDraftStore) -> None:
    draft_store.add_blank_header()
    draft_store.add_blank_header()

    assert len(draft_store.headers) == 2
    assert draft_store.draft.current_provider.headers == {"X-Org": "acme"}

    blank = next(entry for entry in draft_store.headers if entry.is_blank)
    draft_store.update_header(HeaderEntry(id=blank.id, key="X-Project", value="p1"))

    assert draft_store.draft.current_provider.headers == {"X-Org": "acme", "X-Project": "p1"}
    assert draft_store.baseline.current_provider.headers == {"X-Org": "acme"}

    draft_store.remove_header(blank.id)

    assert draft_store.draft.current_provider.headers == {"X-Org": "acme"}


def test_header_round_trip_through_store(draft_store: SettingsDraftStore) -> None:
    pairs = {(entry.key, entry.value) for entry in draft_store.headers}

    assert pairs == set(draft_store.draft.current_provider.headers.items())


def test_set_model_list_falls_back_and_writes_draft(draft_store: SettingsDraftStore) -> None:
    draft_store.set_model_list(["mistral", "phi3"])

    assert draft_store.selection.model_selected.item_id == "mistral"
    assert draft_store.draft.model_config.name == "mistral"
    assert draft_store.baseline.model_config.name == "llama3"

    draft_store.set_model_name("phi3")
    assert [item.item_id for item in draft_store.selection.model_items] == ["mistral", "phi3"]


def test_set_model_list_keeps_current(draft_store: SettingsDraftStore) -> None:
    draft_store.set_model_list(["mistral", "llama3"])

    assert draft_store.draft.model_config.name == "llama3"
    assert draft_store.is_dirty is False


def test_messages_by_key(draft_store: SettingsDraftStore) -> None:
    draft_store.set_error("update_provider", "boom")
    draft_store.set_success("add_language", "ok")
    draft_store.set_error("add_language", "stale")

    draft_store.clear_messages("add_language")

    assert draft_store.errors == {"update_provider": "boom"}
    assert draft_store.success_messages == {}

    draft_store.clear_messages()
    assert draft_store.errors == {}


def test_snapshot_is_detached(draft_store: SettingsDraftStore) -> None:
    snapshot = draft_store.snapshot()
    snapshot.draft.model_config.name = "mutated"
    snapshot.errors["x"] = "y"

    assert draft_store.draft.model_config.name == "llama3"
    assert draft_store.errors == {}


def test_custom_clone_func_is_used(sample_settings, mocker) -> None:
    clone = mocker.Mock(side_effect=deepcopy)

    store = SettingsDraftStore(sample_settings, clone_func=clone)
    store.baseline

    assert clone.call_count >= 3


def test_header_edits_reach_available_provider(draft_store: SettingsDraftStore) -> None:
    draft_store.add_blank_header()
    blank = next(entry for entry in draft_store.headers if entry.is_blank)
    draft_store.update_header(HeaderEntry(id=blank.id, key=" X-New ", value="1"))

    draft = draft_store.draft
    assert draft.current_provider.headers == {"X-Org": "acme", "X-New": "1"}
    assert draft.available_providers[0].headers == {"X-Org": "acme", "X-New": "1"}
    assert draft.available_providers[1].headers == {}
    assert draft_store.baseline.available_providers[0].headers == {"X-Org": "acme"}
