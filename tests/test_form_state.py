import json

import pytest

from cathealth.models.wellness import FormProfile
from cathealth.wizard.form_state import CURRENT_STEP_KEY, FORM_DATA_KEY, FormStateStore
from cathealth.wizard.storage import MemoryStorage, RedisStorage


def test_save_then_load_round_trips(form_store, profile):
    form_store.save(profile, 5)
    loaded, position = form_store.load()
    assert loaded == profile
    assert position == 5


def test_saved_slots_use_wire_names(storage, form_store, profile):
    form_store.save(profile, 3)
    saved = json.loads(storage.get_item(FORM_DATA_KEY))
    assert saved["catName"] == "Whiskers"
    assert saved["favoriteActivities"] == ["Chasing toys", "Watching birds"]
    assert storage.get_item(CURRENT_STEP_KEY) == "3"


def test_load_from_empty_storage_is_absent(form_store):
    assert form_store.load() == (None, None)


@pytest.mark.parametrize("payload", [
    "{not json",
    "[1, 2, 3]",
    json.dumps({"catName": 42}),
])
def test_corrupted_profile_is_absent_and_removed(payload):
    storage = MemoryStorage({FORM_DATA_KEY: payload, CURRENT_STEP_KEY: "2"})
    profile, position = FormStateStore(storage).load()
    assert profile is None
    assert position == 2
    assert FORM_DATA_KEY not in storage


@pytest.mark.parametrize("raw", ["0", "7", "two", ""])
def test_invalid_position_is_absent_and_removed(raw):
    storage = MemoryStorage({CURRENT_STEP_KEY: raw})
    _, position = FormStateStore(storage).load()
    assert position is None
    assert CURRENT_STEP_KEY not in storage


def test_unknown_keys_in_saved_profile_are_ignored():
    storage = MemoryStorage({FORM_DATA_KEY: json.dumps({"catName": "Luna", "legacyField": "x"})})
    profile, _ = FormStateStore(storage).load()
    assert profile == FormProfile(cat_name="Luna")


def test_clear_is_idempotent(storage, form_store, profile):
    form_store.save(profile, 4)
    form_store.clear()
    form_store.clear()
    assert FORM_DATA_KEY not in storage
    assert CURRENT_STEP_KEY not in storage


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex

    def delete(self, key):
        self.data.pop(key, None)


def test_redis_storage_namespaces_by_browser_session(profile):
    client = FakeRedis()
    mine = FormStateStore(RedisStorage("browser-a", client=client))
    theirs = FormStateStore(RedisStorage("browser-b", client=client))

    mine.save(profile, 4)
    assert theirs.load() == (None, None)
    assert mine.load() == (profile, 4)
    assert client.ttls["cathealth:wizard:browser-a:" + CURRENT_STEP_KEY] == 60 * 60 * 24

    mine.clear()
    assert client.data == {}
