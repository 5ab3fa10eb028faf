"""Tests for change notifications and state invalidation."""

from flask import current_app

from shubo import db
from shubo.models import DailyRecord, Recipe, Settings, TankConfig
from shubo.services.notify import RemoteChangeNotifier
from shubo.services.state import get_state


def test_commit_to_watched_table_invalidates_state(seeded):
    state = get_state()
    assert not state.is_stale

    db.session.add(Recipe(shubo_type="高温糖化", recipe_brewing_scale=100))
    db.session.commit()

    assert state.is_stale
    assert len(get_state().recipes) == 2


def test_bulk_update_invalidates_state(seeded):
    state = get_state()

    TankConfig.query.filter_by(tank_id="No.22").update({"is_enabled": False})
    db.session.commit()

    assert state.is_stale
    assert [t["tank_id"] for t in get_state().enabled_tanks()] == ["No.650"]


def test_rollback_does_not_notify(seeded):
    state = get_state()

    db.session.add(Recipe(shubo_type="高温糖化", recipe_brewing_scale=100))
    db.session.flush()
    db.session.rollback()
    db.session.commit()

    assert not state.is_stale


def test_unwatched_table_keeps_state(seeded, mocker):
    state = get_state()
    handler = mocker.MagicMock()
    current_app.extensions["shubo_notifier"].on_remote_change("shubo_daily_records", handler)

    db.session.add(DailyRecord(shubo_number=1, fiscal_year=2023, record_date=state.planned[0].start_date))
    db.session.commit()

    assert not state.is_stale
    handler.assert_called_once_with("shubo_daily_records")


def test_failing_handler_does_not_stop_others(mocker, caplog):
    notifier = RemoteChangeNotifier()
    failing = mocker.MagicMock(side_effect=RuntimeError("boom"))
    other = mocker.MagicMock()
    notifier.on_remote_change("settings", failing)
    notifier.on_remote_change("settings", other)

    notifier.notify("settings")

    other.assert_called_once_with("settings")
    assert "Change handler failed" in caplog.text


def test_invalidate_during_load_is_kept(seeded, mocker):
    state = get_state()

    def committed_elsewhere():
        state.invalidate()
        return 2023

    mocker.patch.object(Settings, "get_fiscal_year", side_effect=committed_elsewhere)
    state.load()

    assert state.is_stale
