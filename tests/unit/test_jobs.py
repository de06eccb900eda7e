"""Unit tests for the job state machine, job store and progress tracker."""

from pathlib import Path

import pytest

from scenestitch.errors import InputValidationError, NoMediaFoundError
from scenestitch.jobs.progress import ProgressTracker
from scenestitch.jobs.store import JobStore
from scenestitch.models.job import BrandingOptions, Job, JobState, JobStatus


@pytest.mark.unit
class TestBrandingOptions:
    @pytest.mark.parametrize(
        "paid,remove,watermark,outro",
        [
            (False, False, True, True),
            (False, True, True, False),
            (True, False, True, True),
            (True, True, False, False),
        ],
    )
    def test_entitlements(self, paid, remove, watermark, outro):
        branding = BrandingOptions(paid_user=paid, remove_watermark=remove)
        assert branding.watermark is watermark
        assert branding.outro is outro


@pytest.mark.unit
class TestJob:
    def _job(self) -> Job:
        return Job(id="job-1", work_dir=Path("/tmp/job-1"))

    def test_initial_state(self):
        job = self._job()
        assert job.state is JobState.CREATED
        assert job.percent == 0
        assert job.message == "Job queued"

    def test_progress_never_goes_backwards(self):
        job = self._job()
        job.start()

        job.advance(40, "Working on scene 2 of 4...")
        job.advance(25, "Working on scene 1 of 4...")

        assert job.percent == 40
        assert job.message == "Working on scene 1 of 4..."

    def test_succeed(self):
        job = self._job()
        job.start()

        assert job.succeed("videos/job-1.mp4") is True

        assert job.state is JobState.DONE
        assert job.percent == 100
        assert job.result_key == "videos/job-1.mp4"
        assert job.finished_at is not None

    def test_terminal_state_is_final(self):
        job = self._job()
        job.start()
        job.fail("Job timed out after 720s")

        assert job.succeed("videos/late.mp4") is False
        assert job.fail("Cancelled") is False
        job.advance(50, "late update")

        assert job.state is JobState.FAILED
        assert job.message == "Failed: Job timed out after 720s"
        assert job.result_key is None

    def test_snapshot_is_detached(self):
        job = self._job()
        snapshot = job.snapshot()
        job.advance(10, "moving")

        assert snapshot.percent == 0
        assert snapshot.state is JobState.CREATED


@pytest.mark.unit
class TestJobStatus:
    def test_expired(self):
        status = JobStatus.expired("missing")

        assert status.state is JobState.EXPIRED
        assert status.percent == 100
        assert status.message == "Done (or not found)"

    def test_to_dict(self):
        status = JobStatus("job-1", JobState.DONE, 100, "Done", result_key="videos/job-1.mp4")

        assert status.to_dict() == {
            "jobId": "job-1",
            "state": "done",
            "percent": 100,
            "status": "Done",
            "key": "videos/job-1.mp4",
        }

    def test_terminal_states(self):
        assert not JobState.CREATED.is_terminal
        assert not JobState.RUNNING.is_terminal
        assert JobState.DONE.is_terminal
        assert JobState.FAILED.is_terminal
        assert JobState.EXPIRED.is_terminal


@pytest.mark.unit
class TestJobStore:
    def test_create_and_get(self, temp_dir):
        store = JobStore()
        job = store.create_job("job-1", temp_dir / "job-1")

        assert store.get_job("job-1") is job
        assert "job-1" in store
        assert len(store) == 1
        assert store.get_status("job-1").state is JobState.CREATED

    def test_duplicate_id(self, temp_dir):
        store = JobStore()
        store.create_job("job-1", temp_dir)
        with pytest.raises(ValueError):
            store.create_job("job-1", temp_dir)

    def test_unknown_id_is_expired(self):
        assert JobStore().get_status("nope").state is JobState.EXPIRED

    def test_delete(self, temp_dir):
        store = JobStore()
        store.create_job("job-1", temp_dir)

        assert store.delete_job("job-1") is True
        assert store.delete_job("job-1") is False
        assert store.get_status("job-1").state is JobState.EXPIRED


@pytest.mark.unit
class TestProgressTracker:
    def test_units(self):
        tracker = ProgressTracker(scene_count=4)
        assert tracker.total_units == 15

    def test_percent_is_floor_and_capped(self):
        updates = []
        tracker = ProgressTracker(scene_count=2, update_callback=lambda p, m: updates.append(p))

        for stage in ("media", "narration", "compose"):
            tracker.complete_unit(stage, "scene 1")
            tracker.complete_unit(stage, "scene 2")
        tracker.complete_unit("finalize", "concat")
        tracker.complete_unit("finalize", "brand")

        # 8 of 9 units done
        assert tracker.percent == 88

        tracker.complete_unit("finalize", "upload")
        assert tracker.percent == 100
        assert updates == sorted(updates)

    def test_never_100_before_last_unit(self):
        tracker = ProgressTracker(scene_count=100)
        for _ in range(100):
            tracker.complete_unit("media", "m")
            tracker.complete_unit("narration", "n")
            tracker.complete_unit("compose", "c")
        tracker.complete_unit("finalize", "f")
        tracker.complete_unit("finalize", "f")

        assert tracker.percent == 99

    def test_extra_units_are_ignored(self):
        tracker = ProgressTracker(scene_count=1)
        tracker.complete_unit("media", "m")
        tracker.complete_unit("media", "m again")

        assert tracker.completed_units == 1

    def test_notify_sends_current_percent(self):
        updates = []
        tracker = ProgressTracker(scene_count=1, update_callback=lambda p, m: updates.append((p, m)))

        tracker.notify("Working on scene 1 of 1...")

        assert updates == [(0, "Working on scene 1 of 1...")]


@pytest.mark.unit
class TestPipelineErrors:
    def test_describe_with_scene(self):
        assert NoMediaFoundError("No media found for 'x'", scene_index=0).describe() == (
            "No media found for 'x' (scene 1)"
        )

    def test_describe_without_scene(self):
        error = InputValidationError("Missing script or voice")
        assert error.describe() == "Missing script or voice"
        assert error.kind == "input_validation"
