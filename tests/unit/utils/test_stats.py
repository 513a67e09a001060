"""Tests for run statistics."""

from imagit.utils.stats import RunStats


class TestRunStats:
    """Tests for RunStats."""

    def test_add_conversion(self):
        """Test recording successful conversions per format."""
        stats = RunStats()
        stats.add_conversion("webp", 1000, 400)
        stats.add_conversion("webp", 500, 300)
        stats.add_conversion("avif", 1000, 200)

        assert stats.succeeded_jobs == 3
        assert stats.total_original_size == 2500
        assert stats.total_converted_size == 900
        assert stats.format_usage["webp"].conversions == 2
        assert stats.format_usage["avif"].converted_size == 200
        assert stats.saved_bytes == 1600

    def test_success_rate(self):
        """Test success rate over finished jobs."""
        stats = RunStats()
        assert stats.success_rate == 0.0

        stats.add_conversion("webp", 10, 5)
        stats.add_conversion("webp", 10, 5)
        stats.add_conversion("webp", 10, 5)
        stats.add_failure()

        assert stats.success_rate == 75.0

    def test_finish_sets_duration(self):
        """Test that finish records the end time."""
        stats = RunStats()
        stats.finish()

        assert stats.end_time is not None
        assert stats.total_duration >= 0

    def test_format_summary(self):
        """Test the human-readable summary."""
        stats = RunStats(images_found=3, skipped_images=1, cancelled_jobs=2)
        stats.add_conversion("webp", 2048, 1024)
        stats.add_failure()

        summary = stats.format_summary()

        assert "1 converted, 1 failed, 2 not started, 1 skipped" in summary
        assert "Images: 3" in summary
        assert "2.0 KB -> 1.0 KB" in summary
        assert "webp(1)" in summary

    def test_to_dict(self):
        """Test serialization for JSON output."""
        stats = RunStats(images_found=1)
        stats.add_conversion("webp", 100, 50)

        data = stats.to_dict()

        assert data["images_found"] == 1
        assert data["succeeded_jobs"] == 1
        assert data["format_usage"] == {
            "webp": {"conversions": 1, "original_size": 100, "converted_size": 50}
        }
