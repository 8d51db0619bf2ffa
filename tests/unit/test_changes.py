"""
Unit tests for loaded entries and change detection.
"""

import pytest

from keyvault_config.changes import ChangeDetector
from keyvault_config.models import LoadedEntry, SecretMetadata


@pytest.mark.unit
class TestLoadedEntry:
    """Test timestamp comparison of loaded entries."""

    def test_both_timestamps_absent_is_up_to_date(self):
        entry = LoadedEntry(key="Secret1", value="Value1")
        assert entry.is_up_to_date(None) is True

    def test_equal_timestamps_are_up_to_date(self, at):
        entry = LoadedEntry(key="Secret1", value="Value1", updated_on=at(0))
        assert entry.is_up_to_date(at(0)) is True

    def test_different_timestamps_are_stale(self, at):
        entry = LoadedEntry(key="Secret1", value="Value1", updated_on=at(0))
        assert entry.is_up_to_date(at(1)) is False

    def test_presence_mismatch_is_stale(self, at):
        with_timestamp = LoadedEntry(key="Secret1", value="Value1", updated_on=at(0))
        without_timestamp = LoadedEntry(key="Secret1", value="Value1")

        assert with_timestamp.is_up_to_date(None) is False
        assert without_timestamp.is_up_to_date(at(0)) is False


@pytest.mark.unit
class TestChangeDetector:
    """Test reuse decisions against a previous snapshot."""

    def test_first_pass_fetches_everything(self, at):
        detector = ChangeDetector()

        assert detector.check(SecretMetadata("Secret1", True, at(0))) is None
        assert detector.reused == {}
        assert detector.dropped == set()

    def test_unchanged_secret_is_reused(self, at):
        previous = {"Secret1": LoadedEntry("Secret1", "Value1", at(0))}
        detector = ChangeDetector(previous)

        reused = detector.check(SecretMetadata("Secret1", True, at(0)))

        assert reused is previous["Secret1"]
        assert detector.reused == previous

    def test_updated_secret_is_fetched(self, at):
        previous = {"Secret1": LoadedEntry("Secret1", "Value1", at(0))}
        detector = ChangeDetector(previous)

        assert detector.check(SecretMetadata("Secret1", True, at(1))) is None
        assert detector.reused == {}
        assert detector.dropped == set()

    def test_missing_candidates_are_dropped(self, at):
        previous = {
            "Secret1": LoadedEntry("Secret1", "Value1", at(0)),
            "Secret2": LoadedEntry("Secret2", "Value2", at(0)),
        }
        detector = ChangeDetector(previous)

        detector.check(SecretMetadata("Secret1", True, at(0)))

        assert detector.dropped == {"Secret2"}

    def test_previous_mapping_is_not_modified(self, at):
        previous = {"Secret1": LoadedEntry("Secret1", "Value1", at(0))}
        detector = ChangeDetector(previous)

        detector.check(SecretMetadata("Secret1", True, at(0)))
        detector.check(SecretMetadata("Secret2", True, at(0)))

        assert list(previous) == ["Secret1"]

    def test_names_are_case_sensitive(self, at):
        previous = {"Secret1": LoadedEntry("Secret1", "Value1", at(0))}
        detector = ChangeDetector(previous)

        assert detector.check(SecretMetadata("SECRET1", True, at(0))) is None
        assert detector.dropped == {"Secret1"}
