"""Functional tests for the debounced auto-save scheduler."""

from __future__ import annotations

import logging

from onboarding.logic.autosave import AutosaveScheduler


def test_burst_of_edits_produces_one_save(timer_factory, mocker):
    save = mocker.Mock(return_value=True)
    scheduler = AutosaveScheduler(save, 1.0, timer_factory)
    for _ in range(5):
        scheduler.schedule()
    assert len(timer_factory.timers) == 5
    assert all(t.cancelled for t in timer_factory.timers[:-1])
    assert timer_factory.last.interval == 1.0
    timer_factory.last.fire()
    save.assert_called_once()
    assert not scheduler.pending


def test_stale_timer_does_not_save(timer_factory, mocker):
    save = mocker.Mock(return_value=True)
    scheduler = AutosaveScheduler(save, 1.0, timer_factory)
    scheduler.schedule()
    stale = timer_factory.last
    scheduler.schedule()
    stale.fn()
    save.assert_not_called()
    timer_factory.last.fire()
    save.assert_called_once()


def test_close_cancels_pending_save_and_refuses_new_ones(timer_factory, mocker):
    save = mocker.Mock(return_value=True)
    scheduler = AutosaveScheduler(save, 1.0, timer_factory)
    scheduler.schedule()
    scheduler.close()
    assert timer_factory.last.cancelled
    timer_factory.last.fn()
    scheduler.schedule()
    assert len(timer_factory.timers) == 1
    save.assert_not_called()


def test_flush_runs_pending_save_immediately(timer_factory, mocker):
    save = mocker.Mock(return_value=True)
    scheduler = AutosaveScheduler(save, 1.0, timer_factory)
    assert scheduler.flush() is False
    scheduler.schedule()
    assert scheduler.flush() is True
    save.assert_called_once()
    assert timer_factory.last.cancelled


def test_save_failures_are_logged_not_raised(timer_factory, mocker, caplog):
    caplog.set_level(logging.WARNING, logger="onboarding.logic.autosave")
    scheduler = AutosaveScheduler(mocker.Mock(side_effect=RuntimeError("offline")), 1.0, timer_factory, name="s1")
    scheduler.schedule()
    timer_factory.last.fire()
    scheduler = AutosaveScheduler(mocker.Mock(return_value=False), 1.0, timer_factory, name="s2")
    scheduler.schedule()
    timer_factory.last.fire()
    assert caplog.text.count("autosave_failed") == 2
