"""Unit tests for the order recomputation scheduler."""

from __future__ import annotations

from unittest.mock import MagicMock, patch


class TestSchedulerInit:
    @patch("comissao.scheduler.jobs.scheduler")
    def test_start_scheduler_adds_job(self, mock_scheduler: MagicMock) -> None:
        from comissao.scheduler.jobs import start_scheduler

        with patch("comissao.scheduler.jobs.settings") as mock_settings:
            mock_settings.ORDER_RECOMPUTE_INTERVAL_MINUTES = 15
            start_scheduler()

        mock_scheduler.add_job.assert_called_once()
        call_kwargs = mock_scheduler.add_job.call_args
        assert call_kwargs.kwargs.get("id") == "recompute_nomination_order"
        assert call_kwargs.kwargs.get("replace_existing") is True
        mock_scheduler.start.assert_called_once()

    @patch("comissao.scheduler.jobs.scheduler")
    def test_zero_interval_disables_scheduler(self, mock_scheduler: MagicMock) -> None:
        from comissao.scheduler.jobs import start_scheduler

        with patch("comissao.scheduler.jobs.settings") as mock_settings:
            mock_settings.ORDER_RECOMPUTE_INTERVAL_MINUTES = 0
            start_scheduler()

        mock_scheduler.add_job.assert_not_called()
        mock_scheduler.start.assert_not_called()

    @patch("comissao.scheduler.jobs.scheduler")
    def test_shutdown_scheduler(self, mock_scheduler: MagicMock) -> None:
        from comissao.scheduler.jobs import shutdown_scheduler

        mock_scheduler.running = True
        shutdown_scheduler()

        mock_scheduler.shutdown.assert_called_once_with(wait=False)

    @patch("comissao.scheduler.jobs.scheduler")
    def test_shutdown_not_running_noop(self, mock_scheduler: MagicMock) -> None:
        from comissao.scheduler.jobs import shutdown_scheduler

        mock_scheduler.running = False
        shutdown_scheduler()

        mock_scheduler.shutdown.assert_not_called()


class TestRecomputeJob:
    @patch("comissao.scheduler.jobs.recompute_nomination_order")
    def test_job_runs_with_scheduler_trigger(self, mock_recompute: MagicMock) -> None:
        from comissao.scheduler.jobs import _recompute_job

        _recompute_job()

        mock_recompute.assert_called_once_with(trigger="scheduler")

    @patch("comissao.scheduler.jobs.recompute_nomination_order")
    def test_job_failure_is_logged_not_raised(self, mock_recompute: MagicMock) -> None:
        from comissao.scheduler.jobs import _recompute_job

        mock_recompute.side_effect = RuntimeError("supabase down")

        _recompute_job()

        mock_recompute.assert_called_once()
