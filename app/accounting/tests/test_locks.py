"""
Tests for DistributedLock.

Redis is mocked; the lock is exercised the way the batch jobs use it:
non-blocking acquisition, extend per batch, release on exit.
"""

import pytest

from accounting.exceptions import LockAcquisitionError
from accounting.locks import DistributedLock


class TestAcquire:
    def test_sets_prefixed_key_with_ttl(self, mock_redis):
        lock = DistributedLock("accounting:savings-backfill", ttl=600, blocking=False)

        assert lock.acquire() is True

        args, kwargs = mock_redis.set.call_args
        assert args[0] == "lock:accounting:savings-backfill"
        assert kwargs == {"nx": True, "ex": 600}
        assert lock.is_held is True

    def test_tokens_differ_between_holders(self, mock_redis):
        first = DistributedLock("a", blocking=False)
        second = DistributedLock("b", blocking=False)

        first.acquire()
        second.acquire()

        assert first._token != second._token

    def test_non_blocking_fails_fast_when_held(self, mock_redis):
        mock_redis.set.return_value = False
        lock = DistributedLock("accounting:liability-migration", blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert exc_info.value.details == {"key": "lock:accounting:liability-migration"}
        assert exc_info.value.error_code == "LOCK_ACQUISITION_FAILED"
        assert lock.is_held is False
        mock_redis.set.assert_called_once()

    def test_blocking_retries_until_free(self, mock_redis):
        mock_redis.set.side_effect = [False, True]

        lock = DistributedLock("key", blocking=True, timeout=1.0)

        assert lock.acquire() is True
        assert mock_redis.set.call_count == 2

    def test_blocking_gives_up_after_timeout(self, mock_redis):
        mock_redis.set.return_value = False

        with pytest.raises(LockAcquisitionError) as exc_info:
            DistributedLock("key", blocking=True, timeout=0.1).acquire()

        assert exc_info.value.details["timeout"] == 0.1


class TestReleaseAndExtend:
    def test_release_runs_compare_and_delete(self, mock_redis):
        lock = DistributedLock("key", blocking=False)
        lock.acquire()
        token = lock._token

        assert lock.release() is True

        args = mock_redis.eval.call_args[0]
        assert args == (DistributedLock.RELEASE_SCRIPT, 1, "lock:key", token)
        assert lock.is_held is False

    def test_release_without_holding(self, mock_redis):
        assert DistributedLock("key").release() is False
        mock_redis.eval.assert_not_called()

    def test_release_of_expired_lock_reports_false(self, mock_redis):
        mock_redis.eval.return_value = 0
        lock = DistributedLock("key", blocking=False)
        lock.acquire()

        assert lock.release() is False

    def test_extend_defaults_to_original_ttl(self, mock_redis):
        lock = DistributedLock("key", ttl=600, blocking=False)
        lock.acquire()

        assert lock.extend() is True

        args = mock_redis.eval.call_args[0]
        assert args[0] == DistributedLock.EXTEND_SCRIPT
        assert args[4] == 600

    def test_extend_with_explicit_ttl(self, mock_redis):
        lock = DistributedLock("key", ttl=600, blocking=False)
        lock.acquire()

        lock.extend(additional_ttl=1200)

        assert mock_redis.eval.call_args[0][4] == 1200

    def test_extend_without_holding(self, mock_redis):
        assert DistributedLock("key").extend() is False
        mock_redis.eval.assert_not_called()


class TestContextManager:
    def test_releases_on_exit(self, mock_redis):
        with DistributedLock("key", blocking=False) as lock:
            assert lock.is_held is True

        assert lock.is_held is False
        mock_redis.eval.assert_called_once()

    def test_releases_and_propagates_on_error(self, mock_redis):
        with pytest.raises(ValueError, match="boom"):
            with DistributedLock("key", blocking=False):
                raise ValueError("boom")

        mock_redis.eval.assert_called_once()

    def test_body_not_run_when_lock_is_held(self, mock_redis):
        mock_redis.set.return_value = False
        ran = False

        with pytest.raises(LockAcquisitionError):
            with DistributedLock("key", blocking=False):
                ran = True

        assert ran is False
        mock_redis.eval.assert_not_called()
