import gc

from models.session_models import AwaitingSiteName, UploadMode
from services.session_store import SessionStore


def test_save_get_clear():
    store = SessionStore()
    session = AwaitingSiteName(upload_mode=UploadMode.ARCHIVE)

    assert store.get_session(1) is None
    store.save_session(1, session)
    assert store.get_session(1) is session
    assert len(store) == 1

    store.clear_session(1)
    assert store.get_session(1) is None
    store.clear_session(1)


def test_saving_none_clears():
    store = SessionStore()
    store.save_session(1, AwaitingSiteName(upload_mode=UploadMode.ARCHIVE))
    store.save_session(1, None)
    assert len(store) == 0


def test_last_write_wins_per_conversation():
    store = SessionStore()
    store.save_session(1, AwaitingSiteName(upload_mode=UploadMode.ARCHIVE))
    store.save_session(1, AwaitingSiteName(upload_mode=UploadMode.MULTI_FILE))
    store.save_session(2, AwaitingSiteName(upload_mode=UploadMode.ARCHIVE))

    assert store.get_session(1).upload_mode == UploadMode.MULTI_FILE
    assert store.get_session(2).upload_mode == UploadMode.ARCHIVE


def test_one_lock_per_conversation():
    store = SessionStore()
    assert store.lock(1) is store.lock(1)
    assert store.lock(1) is not store.lock(2)


def test_idle_locks_are_released():
    store = SessionStore()
    held = store.lock(1)
    store.lock(2)
    gc.collect()

    assert store.lock(1) is held
    assert list(store._locks) == [1]
